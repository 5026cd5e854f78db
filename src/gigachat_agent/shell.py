"""
Interactive chat shell.

Parses slash commands and forwards everything else to the orchestrator as a
chat turn. Every failure is turned into a printable message; the loop only
ends on /exit or end of input.
"""

import asyncio
import json
from pathlib import Path
from typing import Callable

import structlog

from .agent import SessionOrchestrator, TurnResult
from .agent.compaction import CompactionResult
from .config import MAX_TEMPERATURE, MIN_TEMPERATURE, Settings
from .errors import PromptFileError

logger = structlog.get_logger()

SEPARATOR = "-" * 80

HELP_TEXT = """Available commands:
  /exit - quit
  /help - show this help
  /temp [value] - show or set temperature (0.0-2.0)
  /file <name> - send the contents of a file from the prompts directory
  /system_prompt [text] - show or set the system prompt
  /summary - summarize the conversation history now
  /tools - list available tools
  /datetime [timezone] - current date and time from the tool server
  /tool <name> [json arguments] - run a tool and add its result to the conversation"""


def read_prompt_file(prompts_dir: Path, name: str) -> str:
    """Read a prompt file from the prompts directory.

    Raises:
        PromptFileError: If the file is missing or unreadable.
    """
    path = prompts_dir / name
    if not path.is_file():
        raise PromptFileError(f"File not found: {path}")
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise PromptFileError(f"Could not read {path}", original_error=e) from e


def format_compaction(result: CompactionResult) -> str:
    if result.summary:
        return f"Conversation summary: {result.summary}"
    if result.error is not None:
        return f"History truncated without summary: {result.error}"
    return "Nothing to summarize."


class ChatShell:
    """Command surface over one session."""

    def __init__(self, orchestrator: SessionOrchestrator, settings: Settings, temperature: float | None = None):
        self.orchestrator = orchestrator
        self.settings = settings
        self.temperature = settings.temperature if temperature is None else temperature
        self.running = True

    async def handle(self, line: str) -> str:
        """Handle one line of input and return the text to show."""
        line = line.strip()
        if not line:
            return ""

        command, _, arg = line.partition(" ")
        arg = arg.strip()

        if command == "/exit":
            self.running = False
            return "Bye."
        if command == "/help":
            return HELP_TEXT
        if command == "/temp":
            return self._temperature(arg)
        if command == "/file":
            return await self._file(arg)
        if command == "/system_prompt":
            return self._system_prompt(arg)
        if command == "/summary":
            result = await self.orchestrator.summarize()
            return f"{format_compaction(result)}\nContext size: {self.orchestrator.context.size} messages"
        if command == "/tools":
            return self._tools()
        if command == "/datetime":
            result = await self.orchestrator.invoke_tool(
                "get_current_datetime",
                {"timezone": arg} if arg else {},
                fold_into_context=False,
            )
            return f"Current date and time: {result.text}"
        if command == "/tool":
            return await self._tool(arg)

        return await self._turn(line)

    def _temperature(self, arg: str) -> str:
        if not arg:
            return f"Current temperature: {self.temperature:.2f}"
        try:
            value = float(arg)
        except ValueError:
            return f"Error: invalid temperature value. Enter a number from {MIN_TEMPERATURE} to {MAX_TEMPERATURE}"
        if not MIN_TEMPERATURE <= value <= MAX_TEMPERATURE:
            return f"Error: temperature must be in the range {MIN_TEMPERATURE} to {MAX_TEMPERATURE}"
        self.temperature = value
        return f"Temperature set: {self.temperature:.2f}"

    async def _file(self, name: str) -> str:
        if not name:
            return "Error: no file name given. Use: /file <name>"
        try:
            prompt = read_prompt_file(self.settings.prompts_dir, name)
        except PromptFileError as e:
            logger.error("Prompt file error", error=str(e))
            return f"Error: {e}"
        return await self._turn(prompt)

    def _system_prompt(self, arg: str) -> str:
        if not arg:
            current = self.orchestrator.get_system_prompt()
            return f'Current system prompt: "{current}"' if current else "Current system prompt: not set"
        self.orchestrator.set_system_prompt(arg)
        return "System prompt updated"

    def _tools(self) -> str:
        descriptors = self.orchestrator.list_tools()
        if not descriptors:
            return "No tools registered"
        return "Available tools:\n" + "\n".join(f"- {d.name}: {d.description}" for d in descriptors)

    async def _tool(self, arg: str) -> str:
        name, _, raw_args = arg.partition(" ")
        if not name:
            return "Error: no tool name given. Use: /tool <name> [json arguments]"
        arguments = {}
        if raw_args.strip():
            try:
                arguments = json.loads(raw_args)
            except ValueError as e:
                return f"Error: tool arguments are not valid JSON: {e}"
            if not isinstance(arguments, dict):
                return "Error: tool arguments must be a JSON object"
        result = await self.orchestrator.invoke_tool(name, arguments)
        return f"Tool {name}: {result.text}"

    async def _turn(self, text: str) -> str:
        result = await self.orchestrator.send_turn(text, temperature=self.temperature)
        return self.format_turn(result)

    def format_turn(self, result: TurnResult) -> str:
        if not result.success:
            return f"GigaChat: error: {result.error}"

        completion = result.completion
        lines = [
            f"GigaChat: {completion.content if completion.content is not None else '(empty reply)'}",
            SEPARATOR,
            f"Tokens - prompt: {completion.prompt_tokens}, completion: {completion.completion_tokens}, "
            f"total: {completion.total_tokens}",
            f"Total tokens used: {self.orchestrator.total_tokens_used}",
            f"Context size: {completion.context_size} messages ({completion.context_tokens} tokens)",
        ]
        if result.compaction is not None:
            lines.append(format_compaction(result.compaction))
        return "\n".join(lines)

    async def run(
        self,
        read_line: Callable[[str], str] = input,
        write: Callable[[str], None] = print,
    ) -> None:
        """Read commands until /exit or end of input."""
        write(HELP_TEXT)
        write("Enter a message for GigaChat or a command:")
        while self.running:
            try:
                line = await asyncio.to_thread(read_line, "> ")
            except EOFError:
                break
            output = await self.handle(line)
            if output:
                write(output)
        write("Shutting down.")
