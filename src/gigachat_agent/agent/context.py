"""
Bounded conversation log.

Holds role-tagged messages in insertion order. At most one system message
exists and it always sits at index 0.
"""

import structlog

from ..errors import ApiError, CompressionError
from ..llm.base import BaseLLM, Message
from .compaction import (
    KEEP_RECENT,
    SUMMARY_TEMPERATURE,
    CompactionResult,
    build_summary_message,
    build_summary_prompt,
)

logger = structlog.get_logger()

DEFAULT_MAX_MESSAGES = 10


class ConversationContext:
    """Ordered, bounded log of conversation messages."""

    def __init__(self, max_messages: int = DEFAULT_MAX_MESSAGES):
        self.max_messages = max_messages
        self._messages: list[Message] = []
        self.compaction_count = 0

    @property
    def messages(self) -> list[Message]:
        """A copy of the log, oldest first."""
        return list(self._messages)

    @property
    def size(self) -> int:
        return len(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    @property
    def context_tokens(self) -> int:
        """Sum of per-message token counts."""
        return sum(m.token_count for m in self._messages)

    def _has_system(self) -> bool:
        return bool(self._messages) and self._messages[0].role == "system"

    def append(self, message: Message) -> None:
        """Add a message to the end; a system message goes to index 0 instead."""
        if message.role == "system":
            if self._has_system():
                self._messages[0] = message
            else:
                self._messages.insert(0, message)
            return
        self._messages.append(message)

    def add_user_message(self, content: str) -> None:
        self.append(Message(role="user", content=content))

    def add_assistant_message(self, content: str, token_count: int = 0) -> None:
        self.append(Message(role="assistant", content=content, token_count=token_count))

    @property
    def system_prompt(self) -> str:
        return self._messages[0].content if self._has_system() else ""

    def set_system_prompt(self, prompt: str) -> None:
        """Replace the system message, or remove it when prompt is blank."""
        if not prompt.strip():
            self.clear_system_prompt()
            return
        self.append(Message(role="system", content=prompt))

    def clear_system_prompt(self) -> None:
        if self._has_system():
            del self._messages[0]

    def is_full(self) -> bool:
        return self.size >= self.max_messages

    def clear(self) -> None:
        self._messages.clear()

    async def compress(self, llm: BaseLLM, temperature: float = SUMMARY_TEMPERATURE) -> CompactionResult:
        """Replace older history with a model-written summary.

        Keeps the system message and the last two messages. The summary is
        requested with every non-system message in the log. When the
        summarization call fails the older messages are still dropped and
        the failure is reported in the result.
        """
        original_count = self.size
        if original_count <= KEEP_RECENT:
            return CompactionResult(original_count, original_count)

        system_message = self._messages[0] if self._has_system() else None
        recent = self._messages[-KEEP_RECENT:]
        prompt = build_summary_prompt(self._messages)

        logger.info("Compressing conversation", message_count=original_count)

        summary = ""
        summary_tokens = 0
        error: CompressionError | None = None
        try:
            response = await llm.complete([Message(role="user", content=prompt)], temperature=temperature)
        except ApiError as e:
            logger.error("Summarization failed, dropping history without summary", error=str(e))
            error = CompressionError("Summarization call failed", original_error=e)
        else:
            if response.content:
                summary = response.content.strip()
                summary_tokens = response.total_tokens
            else:
                logger.warning("Summarization returned no content, dropping history without summary")
                error = CompressionError("Summarization returned no content")

        self._messages.clear()
        if system_message is not None:
            self._messages.append(system_message)
        if summary:
            self._messages.append(build_summary_message(summary, summary_tokens))
        self._messages.extend(recent)
        self.compaction_count += 1

        result = CompactionResult(
            original_message_count=original_count,
            compacted_message_count=self.size,
            summary=summary,
            success=error is None,
            error=error,
        )
        logger.info(
            "Compression complete",
            original=result.original_message_count,
            compacted=result.compacted_message_count,
            summarized=result.success,
        )
        return result
