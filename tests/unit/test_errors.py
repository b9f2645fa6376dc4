"""Unit tests for the error taxonomy and HTTP status mapping."""

import pytest

from chatapp.errors import (
    ERROR_MESSAGES,
    AuthError,
    BillingError,
    BusyError,
    ChatError,
    CompletionError,
    NotFoundError,
    RateLimitError,
    ServerError,
    ValidationError,
    error_for_status,
)


@pytest.mark.parametrize(
    ("status_code", "expected", "message"),
    [
        (401, AuthError, ERROR_MESSAGES["invalid_api_key"]),
        (402, BillingError, ERROR_MESSAGES["insufficient_credits"]),
        (403, BillingError, ERROR_MESSAGES["account_error"]),
        (429, RateLimitError, ERROR_MESSAGES["rate_limit"]),
        (500, ServerError, ERROR_MESSAGES["server_error"]),
        (599, ServerError, ERROR_MESSAGES["server_error"]),
    ],
)
def test_error_for_status(status_code, expected, message):
    error = error_for_status(status_code)

    assert type(error) is expected
    assert error.user_message == message
    assert error.status_code == status_code


def test_unknown_status_without_message():
    error = error_for_status(404)

    assert type(error) is CompletionError
    assert error.user_message == "HTTP 404"


def test_credit_keyword_detected_case_insensitively():
    error = error_for_status(400, "Not enough CREDITS")

    assert isinstance(error, BillingError)
    assert error.user_message.startswith("Credit Error: Not enough CREDITS")


def test_validation_messages():
    assert ValidationError("empty").user_message == "Please enter a message."
    too_long = ValidationError("too_long", limit=4000)
    assert too_long.user_message == (
        "Message is too long. Please keep it under 4000 characters."
    )
    assert too_long.recoverable is True


def test_to_dict_shape():
    error = NotFoundError("chat-1")

    assert error.to_dict() == {
        "error": "not_found",
        "message": ERROR_MESSAGES["session_not_found"],
        "recoverable": True,
        "context": {"session_id": "chat-1"},
        "type": "NotFoundError",
    }


def test_completion_errors_are_chat_errors():
    for cls in (AuthError, BillingError, RateLimitError, ServerError):
        assert issubclass(cls, CompletionError)
        assert issubclass(cls, ChatError)


def test_busy_error_is_not_a_completion_error():
    error = BusyError(context={"operation": "load_session"})

    assert error.code == "busy"
    assert error.user_message == ERROR_MESSAGES["busy"]
    assert not isinstance(error, CompletionError)
