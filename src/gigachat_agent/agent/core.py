"""
Session orchestration.

Each turn runs to completion before the next one starts:
1. Append the user message to the conversation log
2. Send system prompt + history to the LLM
3. Record the assistant reply with its token count
4. Compress the log when it reaches its message limit
"""

import dataclasses
from dataclasses import dataclass
from typing import Any

import structlog

from ..config import validate_temperature
from ..errors import GigaChatAgentError
from ..llm.base import BaseLLM, CompletionResult, Message
from ..tools import ToolDescriptor, ToolRegistry, ToolResult
from .compaction import CompactionResult
from .context import DEFAULT_MAX_MESSAGES, ConversationContext

logger = structlog.get_logger()


@dataclass(frozen=True)
class TurnResult:
    """Outcome of one conversation turn.

    A successful turn may still carry ``completion.content is None`` when the
    model answered without text; a failed turn has ``error`` set instead.
    """

    completion: CompletionResult | None = None
    error: GigaChatAgentError | None = None
    compaction: CompactionResult | None = None

    @property
    def success(self) -> bool:
        return self.error is None


class SessionOrchestrator:
    """Drives one conversation against the LLM, with optional tools."""

    def __init__(
        self,
        llm: BaseLLM,
        tool_registry: ToolRegistry | None = None,
        context: ConversationContext | None = None,
        max_messages: int = DEFAULT_MAX_MESSAGES,
    ):
        self.llm = llm
        self.tool_registry = tool_registry or ToolRegistry()
        self.context = context or ConversationContext(max_messages=max_messages)
        self.total_tokens_used = 0

    def set_system_prompt(self, prompt: str) -> None:
        self.context.set_system_prompt(prompt)
        logger.info("System prompt updated", length=len(prompt))

    def get_system_prompt(self) -> str:
        return self.context.system_prompt

    async def send_turn(self, text: str, temperature: float | None = None) -> TurnResult:
        """Send a user message and record the reply.

        On failure only the user message stays in the log. An out-of-range
        temperature fails the turn before anything is recorded.
        """
        if temperature is not None:
            try:
                validate_temperature(temperature)
            except ValueError as e:
                logger.error("Turn rejected", error=str(e))
                return TurnResult(error=GigaChatAgentError("Invalid temperature", original_error=e))

        self.context.add_user_message(text)

        try:
            completion = await self.llm.complete(self.context.messages, temperature=temperature)
        except GigaChatAgentError as e:
            logger.error("Turn failed", stage=e.stage, error=str(e))
            return TurnResult(error=e)

        if completion.content is not None:
            self.context.add_assistant_message(completion.content, token_count=completion.total_tokens)
        self.total_tokens_used += completion.total_tokens

        completion = dataclasses.replace(
            completion,
            context_size=self.context.size,
            context_tokens=self.context.context_tokens,
        )

        compaction = None
        if self.context.is_full():
            compaction = await self.context.compress(self.llm)

        return TurnResult(completion=completion, compaction=compaction)

    async def summarize(self) -> CompactionResult:
        """Compress the conversation now, regardless of its size."""
        return await self.context.compress(self.llm)

    def list_tools(self) -> list[ToolDescriptor]:
        return self.tool_registry.list()

    async def invoke_tool(
        self,
        name: str,
        arguments: dict[str, Any] | None = None,
        fold_into_context: bool = True,
    ) -> ToolResult:
        """Run a tool and optionally add its textual result to the conversation."""
        result = await self.tool_registry.invoke(name, arguments or {})
        if fold_into_context:
            self.context.append(Message(role="user", content=f"[tool {name}] {result.text}"))
        return result
