"""
Base classes for LLM providers.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Literal

Role = Literal["system", "user", "assistant"]


@dataclass
class Message:
    """A message in the conversation."""

    role: Role
    content: str
    token_count: int = 0

    def to_payload(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class CompletionResult:
    """Response from a completion call.

    ``content`` is None when the provider answered successfully but without
    any text. Failures are raised as ApiError, never folded into this type.
    """

    content: str | None
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    context_size: int = 0
    context_tokens: int = 0


class BaseLLM(ABC):
    """Base class for LLM providers."""

    def __init__(
        self,
        model: str,
        max_tokens: int = 1024,
        temperature: float = 0.87,
    ):
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

    @abstractmethod
    async def complete(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> CompletionResult:
        """Send the messages and return the first choice with usage counters."""
        pass

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Get the provider name."""
        pass
