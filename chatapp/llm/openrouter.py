"""
OpenRouter LLM Provider

Implementation of BaseLLMProvider for OpenRouter's chat completions API.
OpenRouter speaks the OpenAI wire format, so the official openai SDK is
used with a different base URL and attribution headers.
"""

import logging
from typing import Any

import openai
from openai import AsyncOpenAI

from chatapp.config import LLMSettings
from chatapp.errors import (
    ERROR_MESSAGES,
    AuthError,
    CompletionError,
    NetworkError,
    ResponseFormatError,
    error_for_status,
)
from chatapp.llm.base import BaseLLMProvider
from chatapp.llm.models import LLMRequest, LLMResponse, LLMUsage

logger = logging.getLogger(__name__)

PLACEHOLDER_API_KEYS = {"YOUR_OPEN_ROUTER_API_KEY_HERE"}
UNCONFIGURED_API_KEY = "unconfigured"


class OpenRouterProvider(BaseLLMProvider):
    """
    OpenRouter completion provider.

    Uses the async openai SDK with retries disabled: every failure is
    reported once and the caller decides whether to resubmit.
    """

    def __init__(
        self,
        api_key: str | None,
        base_url: str = "https://openrouter.ai/api/v1",
        model: str = "openai/gpt-3.5-turbo",
        temperature: float = 0.7,
        max_tokens: int = 2000,
        timeout: int = 30,
        referer: str | None = None,
        title: str | None = None,
    ):
        """
        Initialize OpenRouter provider.

        Args:
            api_key: OpenRouter API key (None = not configured)
            base_url: OpenAI-compatible API root
            model: Default model to use
            temperature: Default temperature
            max_tokens: Default max tokens
            timeout: Request timeout
            referer: Value for the HTTP-Referer attribution header
            title: Value for the X-Title attribution header
        """
        super().__init__(
            provider_name="openrouter",
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
        )

        self.api_key = api_key
        self.base_url = base_url.rstrip("/")

        headers = {}
        if referer:
            headers["HTTP-Referer"] = referer
        if title:
            headers["X-Title"] = title

        # The SDK rejects a missing key at construction; generate() checks
        # is_configured() before any request goes out.
        self.client = AsyncOpenAI(
            api_key=api_key or UNCONFIGURED_API_KEY,
            base_url=self.base_url,
            timeout=float(timeout),
            max_retries=0,
            default_headers=headers or None,
        )

        logger.info(
            f"OpenRouter provider initialized with model: {model}",
            extra={"model": model, "base_url": self.base_url},
        )

    @classmethod
    def from_settings(cls, config: LLMSettings) -> "OpenRouterProvider":
        """Build a provider from ``LLMSettings``."""
        return cls(
            api_key=config.openrouter_api_key,
            base_url=config.openrouter_base_url,
            model=config.default_model,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            timeout=config.timeout,
            referer=config.app_referer,
            title=config.app_title,
        )

    def is_configured(self) -> bool:
        return bool(self.api_key) and self.api_key not in PLACEHOLDER_API_KEYS

    async def generate(self, request: LLMRequest) -> LLMResponse:
        """
        Generate completion using the OpenRouter API.

        Args:
            request: LLM request

        Returns:
            LLMResponse with generated content

        Raises:
            AuthError: Missing or rejected API key
            BillingError: Insufficient credits or account limitation
            RateLimitError: Too many requests
            ServerError: Upstream 5xx
            NetworkError: Endpoint unreachable or timed out
            ResponseFormatError: Payload without choices or content
        """
        if not self.is_configured():
            logger.error("OpenRouter API key is not configured")
            raise AuthError(ERROR_MESSAGES["api_key_missing"], context={"reason": "missing_key"})

        request = self._apply_defaults(request)
        self._log_request(request)

        try:
            response = await self.client.chat.completions.create(
                model=request.model,
                messages=[msg.to_payload() for msg in request.messages],
                temperature=request.temperature,
                max_tokens=request.max_tokens,
                stream=False,
                **request.metadata,
            )
        except openai.APIStatusError as e:
            error = error_for_status(e.status_code, self._extract_error_message(e))
            logger.error(
                f"OpenRouter API error: {e}",
                extra={"status_code": e.status_code, "error_type": error.code},
            )
            raise error from e
        except openai.APIConnectionError as e:
            # Also covers openai.APITimeoutError
            logger.error(f"OpenRouter connection error: {e}")
            raise NetworkError(context={"detail": str(e)}) from e
        except openai.APIResponseValidationError as e:
            logger.error(f"OpenRouter returned an unparseable response: {e}")
            raise ResponseFormatError() from e
        except openai.APIError as e:
            logger.error(f"OpenRouter API error: {e}")
            raise CompletionError(str(e) or None) from e

        llm_response = self._to_llm_response(response, request)
        self._log_response(llm_response)
        return llm_response

    async def close(self) -> None:
        await self.client.close()

    def _to_llm_response(self, response: Any, request: LLMRequest) -> LLMResponse:
        choices = getattr(response, "choices", None)
        if not choices:
            raise ResponseFormatError()

        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None) if message is not None else None
        if not content:
            raise ResponseFormatError("No content in API response")

        usage = getattr(response, "usage", None)
        return LLMResponse(
            content=content,
            model=getattr(response, "model", None) or request.model or self.model,
            usage=LLMUsage(
                prompt_tokens=getattr(usage, "prompt_tokens", 0) or 0,
                completion_tokens=getattr(usage, "completion_tokens", 0) or 0,
                total_tokens=getattr(usage, "total_tokens", 0) or 0,
            ),
            finish_reason=self._map_finish_reason(getattr(choices[0], "finish_reason", None)),
            provider=self.provider_name,
            metadata={"id": getattr(response, "id", None)},
        )

    @staticmethod
    def _extract_error_message(error: openai.APIStatusError) -> str | None:
        """Pull the provider's own error text out of the response body."""
        body = error.body
        if isinstance(body, dict):
            nested = body.get("error")
            if isinstance(nested, dict) and nested.get("message"):
                return str(nested["message"])
            if body.get("message"):
                return str(body["message"])
        return None

    def _map_finish_reason(self, reason: str | None) -> str:
        """Map OpenAI-format finish reason to our standard format."""
        if reason in ("stop", "length", "content_filter"):
            return reason
        return "stop"
