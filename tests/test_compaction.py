"""
Tests for the conversation context and its compression.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from gigachat_agent.agent.compaction import (
    SUMMARY_INSTRUCTION,
    build_summary_prompt,
    render_transcript,
)
from gigachat_agent.agent.context import ConversationContext
from gigachat_agent.errors import ApiError, ApiErrorKind, CompressionError
from gigachat_agent.llm.base import CompletionResult, Message


def fill(context: ConversationContext, pairs: int) -> None:
    for i in range(pairs):
        context.add_user_message(f"Question {i}")
        context.add_assistant_message(f"Answer {i}", token_count=10)


def summarizer(content: str | None = "They talked about numbers.", total_tokens: int = 15) -> MagicMock:
    llm = MagicMock()
    llm.complete = AsyncMock(return_value=CompletionResult(content=content, total_tokens=total_tokens))
    return llm


def test_append_keeps_order():
    context = ConversationContext()
    context.add_user_message("one")
    context.add_assistant_message("two")
    context.add_user_message("three")

    assert [m.content for m in context.messages] == ["one", "two", "three"]
    assert context.size == 3


def test_single_system_message_invariant():
    """Test that setting the system prompt twice keeps one system message."""
    context = ConversationContext()
    context.add_user_message("Hello")
    context.set_system_prompt("A")
    context.set_system_prompt("B")

    systems = [m for m in context.messages if m.role == "system"]
    assert len(systems) == 1
    assert context.messages[0].role == "system"
    assert context.messages[0].content == "B"
    assert context.system_prompt == "B"
    assert context.messages[1].content == "Hello"


def test_appending_system_message_replaces_index_zero():
    context = ConversationContext()
    context.append(Message(role="system", content="first"))
    context.add_user_message("hi")
    context.append(Message(role="system", content="second"))

    assert [m.role for m in context.messages] == ["system", "user"]
    assert context.messages[0].content == "second"


def test_blank_system_prompt_removes_it():
    context = ConversationContext()
    context.set_system_prompt("Be brief")
    context.set_system_prompt("   ")

    assert context.system_prompt == ""
    assert context.size == 0


def test_is_full_at_max_messages():
    """Test the Active -> Full transition."""
    context = ConversationContext(max_messages=10)
    fill(context, 4)
    context.add_user_message("ninth")
    assert not context.is_full()

    context.add_assistant_message("tenth")
    assert context.is_full()


def test_context_tokens_sums_messages():
    context = ConversationContext()
    fill(context, 3)

    assert context.context_tokens == 30


def test_messages_returns_copy():
    context = ConversationContext()
    context.add_user_message("hi")

    context.messages.clear()

    assert context.size == 1


def test_render_transcript_skips_system():
    messages = [
        Message(role="system", content="secret rules"),
        Message(role="user", content="Hi"),
        Message(role="assistant", content="Hello"),
    ]

    assert render_transcript(messages) == "user: Hi\nassistant: Hello"


def test_build_summary_prompt():
    prompt = build_summary_prompt([Message(role="user", content="Hi")])

    assert prompt.startswith(SUMMARY_INSTRUCTION)
    assert prompt.endswith("user: Hi")
    assert "2-3 sentences" in prompt


@pytest.mark.asyncio
async def test_compress_noop_for_small_context():
    """Test that two or fewer messages are left alone."""
    llm = summarizer()
    context = ConversationContext()
    context.add_user_message("Hi")
    context.add_assistant_message("Hello")

    result = await context.compress(llm)

    llm.complete.assert_not_called()
    assert context.size == 2
    assert result.original_message_count == result.compacted_message_count == 2


@pytest.mark.asyncio
async def test_compress_with_system_prompt():
    """Test the compressed layout: system, summary, last two."""
    llm = summarizer()
    context = ConversationContext(max_messages=10)
    context.set_system_prompt("Be brief")
    fill(context, 5)

    result = await context.compress(llm)

    assert result.success
    assert result.summary == "They talked about numbers."
    assert context.size == 4
    roles = [m.role for m in context.messages]
    assert roles == ["system", "assistant", "user", "assistant"]
    assert context.messages[0].content == "Be brief"
    assert context.messages[1].content == "Dialogue context: They talked about numbers."
    assert context.messages[1].token_count == 15
    assert context.messages[2].content == "Question 4"
    assert context.messages[3].content == "Answer 4"
    assert context.compaction_count == 1


@pytest.mark.asyncio
async def test_compress_sends_transcript_at_low_temperature():
    llm = summarizer()
    context = ConversationContext()
    context.set_system_prompt("hidden system text")
    fill(context, 2)

    await context.compress(llm)

    args, kwargs = llm.complete.call_args
    sent = args[0]
    assert len(sent) == 1
    assert sent[0].role == "user"
    assert "user: Question 0" in sent[0].content
    assert "assistant: Answer 1" in sent[0].content
    assert "hidden system text" not in sent[0].content
    assert kwargs["temperature"] == 0.5


@pytest.mark.asyncio
async def test_compress_without_system_prompt():
    llm = summarizer()
    context = ConversationContext()
    fill(context, 5)

    await context.compress(llm)

    assert context.size == 3
    assert context.messages[0].content.startswith("Dialogue context: ")


@pytest.mark.asyncio
async def test_compress_failure_still_truncates():
    """Test that a failed summary drops history without fabricating one."""
    llm = MagicMock()
    llm.complete = AsyncMock(side_effect=ApiError("down", ApiErrorKind.STATUS, status_code=503))
    context = ConversationContext()
    context.set_system_prompt("Be brief")
    fill(context, 5)

    result = await context.compress(llm)

    assert not result.success
    assert isinstance(result.error, CompressionError)
    assert isinstance(result.error.original_error, ApiError)
    assert result.summary == ""
    assert [m.content for m in context.messages] == ["Be brief", "Question 4", "Answer 4"]


@pytest.mark.asyncio
async def test_compress_empty_summary_is_not_inserted():
    llm = summarizer(content=None)
    context = ConversationContext()
    fill(context, 3)

    result = await context.compress(llm)

    assert not result.success
    assert context.size == 2
    assert all(not m.content.startswith("Dialogue context") for m in context.messages)


@pytest.mark.asyncio
async def test_full_context_compresses_within_bound():
    """Test that a full context compresses to at most system + summary + 2."""
    llm = summarizer()
    context = ConversationContext(max_messages=10)
    context.set_system_prompt("rules")
    fill(context, 10)
    assert context.is_full()

    await context.compress(llm)

    assert context.size <= 1 + 1 + 2
    assert not context.is_full()
