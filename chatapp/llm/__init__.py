"""
Completion provider layer.

Usage:
    from chatapp.config import get_settings
    from chatapp.llm import OpenRouterProvider

    provider = OpenRouterProvider.from_settings(get_settings().llm)
    reply = await provider.send([Message(role=Role.USER, content="Hello!")])
    print(reply.content)
"""

from chatapp.llm.base import BaseLLMProvider
from chatapp.llm.models import CompletionOptions, LLMRequest, LLMResponse, LLMUsage
from chatapp.llm.openrouter import OpenRouterProvider

__all__ = [
    "BaseLLMProvider",
    "CompletionOptions",
    "LLMRequest",
    "LLMResponse",
    "LLMUsage",
    "OpenRouterProvider",
]
