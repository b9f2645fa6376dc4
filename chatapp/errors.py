"""
Error Taxonomy

Exceptions raised by the conversation manager, the session store and the
completion client. Every error carries a stable ``code`` and a
``user_message`` that presentation layers can show verbatim.
"""

from typing import Any, Literal

# User-facing text shown by the chat UI for each failure
ERROR_MESSAGES = {
    "api_key_missing": "API key is not configured. Please check your configuration.",
    "network_error": "Network error. Please check your connection and try again.",
    "api_error": "Sorry, something went wrong. Please try again.",
    "empty_message": "Please enter a message.",
    "message_too_long": "Message is too long. Please keep it under {limit} characters.",
    "invalid_api_key": "Invalid API key. Please check your OpenRouter API key.",
    "insufficient_credits": (
        "Insufficient credits. Please add credits to your OpenRouter account to continue."
    ),
    "account_error": (
        "Access forbidden. This may be due to insufficient credits or account limitations. "
        "Please check your OpenRouter account."
    ),
    "rate_limit": "Too many requests. Please wait a moment and try again.",
    "server_error": "Server error. Please try again later.",
    "invalid_response": "Invalid response format from API",
    "session_not_found": "Chat not found.",
    "busy": "Please wait for the current response to finish.",
}


class ChatError(Exception):
    """
    Base exception for chat failures.

    Attributes:
        message: Error description, safe to display
        recoverable: Whether the user can retry or continue
        context: Additional context for debugging
    """

    code = "chat_error"

    def __init__(
        self,
        message: str | None = None,
        recoverable: bool = True,
        context: dict[str, Any] | None = None,
    ):
        self.message = message or ERROR_MESSAGES["api_error"]
        self.recoverable = recoverable
        self.context = context or {}
        super().__init__(self.message)

    @property
    def user_message(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/API responses."""
        return {
            "error": self.code,
            "message": self.user_message,
            "recoverable": self.recoverable,
            "context": self.context,
            "type": self.__class__.__name__,
        }


class ValidationError(ChatError):
    """User input rejected before any side effect."""

    code = "validation_error"

    def __init__(
        self,
        reason: Literal["empty", "too_long"],
        limit: int | None = None,
        context: dict[str, Any] | None = None,
    ):
        self.reason = reason
        self.limit = limit
        if reason == "empty":
            message = ERROR_MESSAGES["empty_message"]
        else:
            message = ERROR_MESSAGES["message_too_long"].format(limit=limit)
        super().__init__(message, recoverable=True, context=context)


class NotFoundError(ChatError):
    """Requested session does not exist."""

    code = "not_found"

    def __init__(self, session_id: str, context: dict[str, Any] | None = None):
        self.session_id = session_id
        super().__init__(
            ERROR_MESSAGES["session_not_found"],
            recoverable=True,
            context={"session_id": session_id, **(context or {})},
        )


class BusyError(ChatError):
    """Session change attempted while a completion round is pending."""

    code = "busy"

    def __init__(self, context: dict[str, Any] | None = None):
        super().__init__(ERROR_MESSAGES["busy"], recoverable=True, context=context)


class PersistenceError(ChatError):
    """Session store read/write failure. Logged by the store, never surfaced."""

    code = "persistence_error"

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message, recoverable=True, context=context)


class CompletionError(ChatError):
    """Completion round failed. Base class for provider failures."""

    code = "completion_error"
    default_message = ERROR_MESSAGES["api_error"]

    def __init__(
        self,
        message: str | None = None,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ):
        self.status_code = status_code
        ctx = dict(context or {})
        if status_code is not None:
            ctx["status_code"] = status_code
        super().__init__(message or self.default_message, recoverable=True, context=ctx)


class AuthError(CompletionError):
    code = "auth_error"
    default_message = ERROR_MESSAGES["invalid_api_key"]


class BillingError(CompletionError):
    code = "billing_error"
    default_message = ERROR_MESSAGES["insufficient_credits"]


class RateLimitError(CompletionError):
    code = "rate_limit"
    default_message = ERROR_MESSAGES["rate_limit"]


class ServerError(CompletionError):
    code = "server_error"
    default_message = ERROR_MESSAGES["server_error"]


class NetworkError(CompletionError):
    code = "network_error"
    default_message = ERROR_MESSAGES["network_error"]


class ResponseFormatError(CompletionError):
    code = "response_format_error"
    default_message = ERROR_MESSAGES["invalid_response"]


def error_for_status(status_code: int, provider_message: str | None = None) -> CompletionError:
    """
    Map an HTTP error status from the completion endpoint to a typed error.

    Args:
        status_code: HTTP status returned by the provider
        provider_message: Error text extracted from the response body, if any

    Returns:
        The CompletionError subclass matching the failure
    """
    context = {"provider_message": provider_message} if provider_message else None

    if status_code == 401:
        return AuthError(status_code=status_code, context=context)
    if status_code == 402:
        return BillingError(status_code=status_code, context=context)
    if status_code == 403:
        return BillingError(ERROR_MESSAGES["account_error"], status_code=status_code, context=context)
    if status_code == 429:
        return RateLimitError(status_code=status_code, context=context)
    if status_code >= 500:
        return ServerError(status_code=status_code, context=context)

    message = provider_message or f"HTTP {status_code}"
    lowered = message.lower()
    if "credit" in lowered or "balance" in lowered:
        return BillingError(
            f"Credit Error: {message}. Please add credits to your OpenRouter account.",
            status_code=status_code,
            context=context,
        )
    return CompletionError(message, status_code=status_code, context=context)
