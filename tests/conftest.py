import json
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from gigachat_agent.llm.base import CompletionResult

NOW = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

TOKEN_URL = "https://auth.test/api/v2/oauth"
API_URL = "https://api.test/api/v1/chat/completions"


def epoch_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def token_body(value: str = "jwt-token", expires_in: timedelta = timedelta(minutes=30)) -> str:
    return json.dumps({
        "access_token": value,
        "expires_at": epoch_ms(NOW + expires_in),
        "token_type": "Bearer",
    })


def completion_body(content: str | None = "Hello!", total_tokens: int = 30) -> str:
    message = {"role": "assistant"}
    if content is not None:
        message["content"] = content
    return json.dumps({
        "choices": [{"message": message, "index": 0, "finish_reason": "stop"}],
        "usage": {
            "prompt_tokens": total_tokens - 10,
            "completion_tokens": 10,
            "total_tokens": total_tokens,
        },
    })


@pytest.fixture
def mock_llm() -> MagicMock:
    """LLM double answering every completion with the same reply."""
    llm = MagicMock()
    llm.model = "test-model"
    llm.complete = AsyncMock(return_value=CompletionResult(
        content="Hello! How can I help you?",
        prompt_tokens=12,
        completion_tokens=8,
        total_tokens=20,
    ))
    return llm
