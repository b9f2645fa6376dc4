"""Unit tests for session persistence store behavior."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from unittest.mock import patch

import pytest

from chatapp.models.conversation import Message, Role, Session
from chatapp.sessions.store import SessionStore, derive_title


def _session(session_id: str, *contents: str) -> Session:
    return Session(
        id=session_id,
        messages=[
            Message(role=Role.USER if i % 2 == 0 else Role.ASSISTANT, content=text)
            for i, text in enumerate(contents)
        ],
    )


def _read(path) -> dict:
    with open(path, encoding="utf-8") as handle:
        return json.load(handle)


class TestSaveAndFind:
    def test_round_trip_by_id(self, session_store):
        session = _session("chat-1", "Hello", "Hi there")

        session_store.save(session)
        found = session_store.find_by_id("chat-1")

        assert found.id == session.id
        assert found.messages == session.messages

    def test_new_sessions_inserted_at_front(self, session_store):
        session_store.save(_session("chat-1", "first"))
        session_store.save(_session("chat-2", "second"))

        assert [s.id for s in session_store.list()] == ["chat-2", "chat-1"]

    def test_existing_session_overwritten_in_place(self, session_store):
        session_store.save(_session("chat-1", "first"))
        session_store.save(_session("chat-2", "second"))

        session_store.save(_session("chat-1", "first", "reply"))

        assert [s.id for s in session_store.list()] == ["chat-2", "chat-1"]
        assert len(session_store) == 2
        assert len(session_store.find_by_id("chat-1").messages) == 2

    def test_save_writes_single_keyed_record(self, session_store, store_path):
        session_store.save(_session("chat-1", "Hello"))

        document = _read(store_path)
        assert list(document) == ["chatHistory"]
        record = document["chatHistory"][0]
        assert record["id"] == "chat-1"
        assert record["title"] == "Hello"
        assert record["messages"] == [{"role": "user", "content": "Hello"}]
        assert "created_at" in record and "updated_at" in record

    def test_custom_store_key(self, store_path):
        store = SessionStore(store_path, store_key="sessions")
        store.save(_session("chat-1", "Hello"))

        assert list(_read(store_path)) == ["sessions"]

    def test_save_refreshes_updated_at(self, session_store):
        old = datetime(2020, 1, 1, tzinfo=UTC)
        session = _session("chat-1", "Hello").model_copy(update={"updated_at": old})

        saved = session_store.save(session)

        assert saved.updated_at > old
        assert saved.created_at == session.created_at

    def test_find_missing_returns_none(self, session_store):
        assert session_store.find_by_id("nope") is None
        assert session_store.find_by_title("nope") is None

    def test_find_by_title(self, session_store):
        session_store.save(_session("chat-1", "Plan a trip to Lisbon"))

        assert session_store.find_by_title("Plan a trip to Lisbon").id == "chat-1"

    def test_returned_sessions_are_copies(self, session_store):
        session_store.save(_session("chat-1", "Hello"))

        found = session_store.find_by_id("chat-1")
        found.messages.append(Message(role=Role.ASSISTANT, content="sneaky"))

        assert len(session_store.find_by_id("chat-1").messages) == 1

    def test_list_limit(self, session_store):
        for index in range(5):
            session_store.save(_session(f"chat-{index}", f"question {index}"))

        assert [s.id for s in session_store.list(2)] == ["chat-4", "chat-3"]
        assert len(session_store.list()) == 5

    def test_delete(self, session_store, store_path):
        session_store.save(_session("chat-1", "Hello"))

        assert session_store.delete("chat-1") is True
        assert session_store.delete("chat-1") is False
        assert _read(store_path) == {"chatHistory": []}


class TestTitles:
    def test_title_from_first_user_message(self):
        messages = [
            Message(role=Role.ASSISTANT, content="Welcome"),
            Message(role=Role.USER, content="Hello"),
        ]

        assert derive_title(messages) == "Hello"

    def test_long_title_truncated_with_ellipsis(self):
        content = "a" * 31

        assert derive_title([Message(role=Role.USER, content=content)]) == "a" * 30 + "..."

    def test_title_at_limit_not_truncated(self):
        content = "b" * 30

        assert derive_title([Message(role=Role.USER, content=content)]) == content

    def test_chat_counter_when_no_user_message(self, session_store):
        first = session_store.save(
            Session(id="chat-a", messages=[Message(role=Role.ASSISTANT, content="hi")])
        )
        second = session_store.save(Session(id="chat-b", messages=[]))

        assert first.title == "Chat 1"
        assert second.title == "Chat 2"

    def test_explicit_title_kept(self, session_store):
        session = _session("chat-1", "Hello").model_copy(update={"title": "Pinned"})

        assert session_store.save(session).title == "Pinned"


class TestLoad:
    def test_missing_file_gives_empty_store(self, store_path):
        store = SessionStore(store_path)

        assert store.load() == []

    def test_reload_from_disk(self, session_store, store_path):
        session_store.save(_session("chat-1", "Hello", "Hi there"))
        session_store.save(_session("chat-2", "Second"))

        reloaded = SessionStore(store_path)
        sessions = reloaded.load()

        assert [s.id for s in sessions] == ["chat-2", "chat-1"]
        assert sessions[1].messages == session_store.find_by_id("chat-1").messages
        assert sessions[1].messages[1].role is Role.ASSISTANT

    def test_invalid_json_gives_empty_store_and_warns(self, store_path, caplog):
        store_path.parent.mkdir(parents=True, exist_ok=True)
        store_path.write_text("{not json", encoding="utf-8")
        store = SessionStore(store_path)

        with caplog.at_level(logging.WARNING):
            assert store.load() == []

        assert "Failed to load chat history" in caplog.text

    def test_wrong_shape_gives_empty_store(self, store_path):
        store_path.parent.mkdir(parents=True, exist_ok=True)
        store_path.write_text(json.dumps({"chatHistory": {"id": "x"}}), encoding="utf-8")

        assert SessionStore(store_path).load() == []

    def test_malformed_records_skipped(self, store_path):
        store_path.parent.mkdir(parents=True, exist_ok=True)
        good = _session("chat-ok", "Hello").model_dump(mode="json")
        bad = {"id": "chat-bad", "messages": [{"role": "bot", "content": "x"}]}
        store_path.write_text(json.dumps({"chatHistory": [bad, good]}), encoding="utf-8")

        sessions = SessionStore(store_path).load()

        assert [s.id for s in sessions] == ["chat-ok"]


class TestBestEffortWrites:
    def test_write_failure_is_swallowed_and_logged(self, session_store, caplog):
        with patch("chatapp.sessions.store.os.replace", side_effect=OSError("quota exceeded")):
            with caplog.at_level(logging.ERROR):
                saved = session_store.save(_session("chat-1", "Hello"))

        assert saved.id == "chat-1"
        assert session_store.find_by_id("chat-1") is not None
        assert "Failed to save chat history" in caplog.text

    def test_failed_write_leaves_previous_file_intact(self, session_store, store_path):
        session_store.save(_session("chat-1", "Hello"))
        before = store_path.read_text(encoding="utf-8")

        with patch("chatapp.sessions.store.os.replace", side_effect=OSError("disk full")):
            session_store.save(_session("chat-2", "World"))

        assert store_path.read_text(encoding="utf-8") == before
        assert [p.name for p in store_path.parent.iterdir()] == [store_path.name]

    def test_unwritable_directory(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        store = SessionStore(blocker / "chat_history.json")

        saved = store.save(_session("chat-1", "Hello"))

        assert saved.title == "Hello"


@pytest.mark.parametrize("count", [0, 1, 3])
def test_len_matches_saved_sessions(session_store, count):
    for index in range(count):
        session_store.save(_session(f"chat-{index}", "x"))

    assert len(session_store) == count
