"""
Conversation compaction - summarization of older history.

When the conversation log reaches its message limit, everything except the
system prompt and the last two messages is replaced by a short model-written
summary. If summarization fails the old messages are dropped anyway: the log
stays bounded at the cost of losing that history.
"""

from dataclasses import dataclass

from ..errors import CompressionError
from ..llm.base import Message

SUMMARY_TEMPERATURE = 0.5
KEEP_RECENT = 2

SUMMARY_INSTRUCTION = (
    "Make a short summary of the following dialogue, keeping its main point "
    "and key details. Present the result as 2-3 sentences:"
)
SUMMARY_PREFIX = "Dialogue context: "


@dataclass
class CompactionResult:
    """Result of a compaction operation."""

    original_message_count: int
    compacted_message_count: int
    summary: str = ""
    success: bool = True
    error: CompressionError | None = None


def render_transcript(messages: list[Message]) -> str:
    """Render non-system messages as ``role: content`` lines."""
    return "\n".join(f"{m.role}: {m.content}" for m in messages if m.role != "system")


def build_summary_prompt(messages: list[Message]) -> str:
    """Build the summarization request for the given history."""
    return f"{SUMMARY_INSTRUCTION}\n\n{render_transcript(messages)}"


def build_summary_message(summary: str, token_count: int = 0) -> Message:
    return Message(role="assistant", content=f"{SUMMARY_PREFIX}{summary}", token_count=token_count)
