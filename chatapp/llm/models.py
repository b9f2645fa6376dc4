"""
LLM Request and Response Models

Pydantic models for completion provider interactions.
Messages reuse the conversation ``Message`` model so roles never diverge.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from chatapp.models.conversation import Message


class CompletionOptions(BaseModel):
    """Per-request overrides of the provider defaults."""

    model: Optional[str] = Field(
        None,
        description="Model identifier (overrides default)"
    )
    max_tokens: Optional[int] = Field(
        None,
        gt=0,
        description="Maximum tokens to generate (overrides default)"
    )
    temperature: Optional[float] = Field(
        None,
        ge=0.0,
        le=2.0,
        description="Sampling temperature (overrides default)"
    )


class LLMRequest(BaseModel):
    """Request to a completion provider."""

    messages: List[Message] = Field(
        ...,
        description="Conversation messages, system preamble first",
        min_length=1
    )
    temperature: Optional[float] = Field(
        None,
        ge=0.0,
        le=2.0,
        description="Sampling temperature (overrides default)"
    )
    max_tokens: Optional[int] = Field(
        None,
        gt=0,
        description="Maximum tokens to generate (overrides default)"
    )
    model: Optional[str] = Field(
        None,
        description="Specific model to use (overrides default)"
    )
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Additional provider-specific parameters"
    )


class LLMUsage(BaseModel):
    """Token usage information."""

    prompt_tokens: int = Field(
        default=0,
        ge=0,
        description="Number of tokens in the prompt"
    )
    completion_tokens: int = Field(
        default=0,
        ge=0,
        description="Number of tokens in the completion"
    )
    total_tokens: int = Field(
        default=0,
        ge=0,
        description="Total tokens used"
    )


class LLMResponse(BaseModel):
    """Response from a completion provider."""

    content: str = Field(
        ...,
        description="Generated text content"
    )
    model: str = Field(
        ...,
        description="Model that generated the response"
    )
    usage: LLMUsage = Field(
        default_factory=LLMUsage,
        description="Token usage information"
    )
    finish_reason: Literal["stop", "length", "content_filter", "error"] = Field(
        "stop",
        description="Reason the generation stopped"
    )
    provider: str = Field(
        ...,
        description="Provider that handled the request"
    )
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Additional provider-specific response data"
    )
