"""
Base LLM Provider

Abstract base class defining the completion client contract consumed by
the conversation manager.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence

from chatapp.errors import ResponseFormatError
from chatapp.llm.models import CompletionOptions, LLMRequest, LLMResponse
from chatapp.models.conversation import Message, Role

logger = logging.getLogger(__name__)


class BaseLLMProvider(ABC):
    """
    Abstract base class for completion providers.

    Subclasses implement ``generate`` for one remote API. Callers use
    ``send``, which turns an ordered message sequence into one assistant
    message. A provider performs exactly one attempt per call.

    Attributes:
        provider_name: Unique identifier for this provider
        model: Default model identifier
        temperature: Default sampling temperature
        max_tokens: Default maximum tokens to generate
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        provider_name: str,
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 2000,
        timeout: int = 30,
    ):
        self.provider_name = provider_name
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

        logger.info(
            f"Initialized {provider_name} provider",
            extra={
                "provider": provider_name,
                "model": model,
                "temperature": temperature,
                "max_tokens": max_tokens,
            },
        )

    @abstractmethod
    async def generate(self, request: LLMRequest) -> LLMResponse:
        """
        Generate a completion from the remote API.

        Args:
            request: LLM request with messages and parameters

        Returns:
            LLMResponse with generated content and metadata

        Raises:
            CompletionError: Typed provider failure (auth, billing, rate
                limit, server, network, malformed response)
        """
        pass  # pragma: no cover - abstract method

    async def send(
        self,
        messages: Sequence[Message],
        options: CompletionOptions | None = None,
    ) -> Message:
        """
        Run one completion round and return the assistant reply.

        Args:
            messages: Ordered outbound sequence
            options: Optional model / max_tokens / temperature overrides

        Returns:
            Assistant message with surrounding whitespace removed
        """
        if not messages:
            raise ValueError("Messages are required and cannot be empty")

        options = options or CompletionOptions()
        request = LLMRequest(
            messages=list(messages),
            model=options.model,
            max_tokens=options.max_tokens,
            temperature=options.temperature,
        )
        response = await self.generate(request)

        content = response.content.strip()
        if not content:
            raise ResponseFormatError("No content in API response")
        return Message(role=Role.ASSISTANT, content=content)

    async def close(self) -> None:
        """Release network resources held by the provider."""
        return None

    def _apply_defaults(self, request: LLMRequest) -> LLMRequest:
        """
        Apply default values to request if not specified.

        Explicit zero values (e.g. temperature 0.0) are kept.
        """
        if request.model is None:
            request.model = self.model
        if request.temperature is None:
            request.temperature = self.temperature
        if request.max_tokens is None:
            request.max_tokens = self.max_tokens
        return request

    def _log_request(self, request: LLMRequest) -> None:
        """Log request details for debugging."""
        logger.debug(
            f"{self.provider_name} request",
            extra={
                "provider": self.provider_name,
                "model": request.model,
                "message_count": len(request.messages),
                "temperature": request.temperature,
                "max_tokens": request.max_tokens,
            },
        )

    def _log_response(self, response: LLMResponse) -> None:
        """Log response details for debugging."""
        logger.debug(
            f"{self.provider_name} response",
            extra={
                "provider": self.provider_name,
                "model": response.model,
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
                "finish_reason": response.finish_reason,
            },
        )
