"""
Tests for the session orchestrator.
"""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from gigachat_agent.agent.core import SessionOrchestrator, TurnResult
from gigachat_agent.errors import ApiError, ApiErrorKind, ToolErrorKind
from gigachat_agent.llm.auth import TokenCache
from gigachat_agent.llm.base import CompletionResult
from gigachat_agent.llm.gigachat import GigaChatLLM
from gigachat_agent.tools.registry import ToolRegistry

from .conftest import API_URL, NOW, TOKEN_URL, completion_body
from .test_tools import EchoTool


@pytest.mark.asyncio
async def test_send_turn_records_reply(mock_llm):
    """Test a successful turn."""
    orchestrator = SessionOrchestrator(mock_llm)

    result = await orchestrator.send_turn("Hello!", temperature=0.7)

    assert result.success
    assert result.completion.content == "Hello! How can I help you?"
    assert result.completion.context_size == 2
    assert result.completion.context_tokens == 20
    messages = orchestrator.context.messages
    assert [m.role for m in messages] == ["user", "assistant"]
    assert messages[1].token_count == 20
    assert orchestrator.total_tokens_used == 20
    _, kwargs = mock_llm.complete.call_args
    assert kwargs["temperature"] == 0.7


@pytest.mark.asyncio
async def test_send_turn_includes_system_prompt_once(mock_llm):
    orchestrator = SessionOrchestrator(mock_llm)
    orchestrator.set_system_prompt("A")
    orchestrator.set_system_prompt("B")

    await orchestrator.send_turn("Hi")

    sent = mock_llm.complete.call_args.args[0]
    assert [m.role for m in sent] == ["system", "user"]
    assert sent[0].content == "B"
    assert orchestrator.get_system_prompt() == "B"


@pytest.mark.asyncio
async def test_failed_turn_keeps_only_user_message():
    """Test that a failed call is reported and not recorded."""
    llm = MagicMock()
    llm.complete = AsyncMock(side_effect=ApiError("boom", ApiErrorKind.TRANSPORT))
    orchestrator = SessionOrchestrator(llm)

    result = await orchestrator.send_turn("Hello!")

    assert not result.success
    assert isinstance(result.error, ApiError)
    assert result.completion is None
    assert [m.role for m in orchestrator.context.messages] == ["user"]
    assert "completion" in str(result.error)


@pytest.mark.asyncio
async def test_empty_reply_is_success_without_content():
    """Test that an empty answer differs from a failed call."""
    llm = MagicMock()
    llm.complete = AsyncMock(return_value=CompletionResult(content=None, total_tokens=5))
    orchestrator = SessionOrchestrator(llm)

    result = await orchestrator.send_turn("Hello!")

    assert result.success
    assert result.completion.content is None
    assert orchestrator.context.size == 1
    assert orchestrator.total_tokens_used == 5


@pytest.mark.asyncio
async def test_full_context_compresses_after_turn():
    """Test automatic compression once the log reaches its limit."""
    replies = [
        CompletionResult(content="a1", total_tokens=10),
        CompletionResult(content="a2", total_tokens=10),
        CompletionResult(content="summary of a1 a2", total_tokens=7),
    ]
    llm = MagicMock()
    llm.complete = AsyncMock(side_effect=replies)
    orchestrator = SessionOrchestrator(llm, max_messages=4)

    first = await orchestrator.send_turn("q1")
    second = await orchestrator.send_turn("q2")

    assert first.compaction is None
    assert second.compaction is not None
    assert second.compaction.success
    assert second.completion.context_size == 4
    contents = [m.content for m in orchestrator.context.messages]
    assert contents == ["Dialogue context: summary of a1 a2", "q2", "a2"]
    assert llm.complete.await_count == 3


@pytest.mark.asyncio
async def test_summarize_on_demand(mock_llm):
    orchestrator = SessionOrchestrator(mock_llm)
    for text in ("one", "two"):
        await orchestrator.send_turn(text)

    result = await orchestrator.summarize()

    assert result.original_message_count == 4
    assert orchestrator.context.size == 3


@pytest.mark.asyncio
async def test_invoke_tool_folds_result(mock_llm):
    """Test that a tool result becomes a message for the next turn."""
    registry = ToolRegistry()
    registry.register(EchoTool())
    orchestrator = SessionOrchestrator(mock_llm, tool_registry=registry)

    result = await orchestrator.invoke_tool("echo", {"text": "ping"})

    assert result.success
    last = orchestrator.context.messages[-1]
    assert last.role == "user"
    assert last.content == "[tool echo] ping"


@pytest.mark.asyncio
async def test_invoke_unknown_tool_does_not_raise(mock_llm):
    orchestrator = SessionOrchestrator(mock_llm)

    result = await orchestrator.invoke_tool("unknown_tool", {}, fold_into_context=False)

    assert not result.success
    assert result.error_kind == ToolErrorKind.NOT_FOUND
    assert orchestrator.context.size == 0


def test_turn_result_success_flag():
    assert TurnResult(completion=CompletionResult(content=None)).success
    assert not TurnResult(error=ApiError("x", ApiErrorKind.PARSE)).success


@pytest.mark.asyncio
async def test_out_of_range_temperature_fails_turn(mock_llm):
    """Test that a bad temperature is a failed turn, not an exception."""
    orchestrator = SessionOrchestrator(mock_llm)

    result = await orchestrator.send_turn("Hello!", temperature=2.5)

    assert not result.success
    assert isinstance(result.error.original_error, ValueError)
    assert orchestrator.context.size == 0
    mock_llm.complete.assert_not_called()


@pytest.mark.asyncio
async def test_out_of_range_token_expiry_does_not_escape_turn():
    """Test a turn against a token endpoint reporting an absurd expiry."""
    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url) == TOKEN_URL:
            return httpx.Response(200, text='{"access_token": "t", "expires_at": 1e30}')
        return httpx.Response(200, text=completion_body("ok"))

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    llm = GigaChatLLM(TokenCache("id", "secret", TOKEN_URL, client, clock=lambda: NOW), client, api_url=API_URL)
    orchestrator = SessionOrchestrator(llm)

    result = await orchestrator.send_turn("hi")

    assert result.success
    assert result.completion.content == "ok"
