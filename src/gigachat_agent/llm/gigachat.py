"""
GigaChat LLM provider over the chat-completions REST endpoint.
"""

import json
from typing import Any

import httpx
import structlog

from ..config import validate_temperature
from ..errors import ApiError, ApiErrorKind, AuthError
from .auth import TokenCache
from .base import BaseLLM, CompletionResult, Message

logger = structlog.get_logger()

TOP_P = 0.9


def encode_payload(payload: dict[str, Any]) -> bytes:
    """Serialize a request body.

    Quotes, backslashes and every control character in string values are
    escaped; non-ASCII text is kept as UTF-8.
    """
    return json.dumps(payload, ensure_ascii=False).encode("utf-8")


def _usage_int(usage: dict[str, Any], key: str) -> int:
    value = usage.get(key)
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    return 0


def parse_completion_response(body: str) -> CompletionResult:
    """Extract the first choice's content and the usage counters.

    Missing ``choices``, ``message`` or a null ``content`` give ``content=None``;
    each usage counter defaults to 0 on its own.

    Raises:
        ApiError: If the body is not a JSON object.
    """
    try:
        data = json.loads(body)
    except ValueError as e:
        raise ApiError("Malformed JSON in completion response", ApiErrorKind.PARSE, body=body, original_error=e) from e

    if not isinstance(data, dict):
        raise ApiError("Completion response is not a JSON object", ApiErrorKind.PARSE, body=body)

    content = None
    choices = data.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        message = choices[0].get("message")
        if isinstance(message, dict) and isinstance(message.get("content"), str):
            content = message["content"]

    usage = data.get("usage")
    if not isinstance(usage, dict):
        usage = {}

    return CompletionResult(
        content=content,
        prompt_tokens=_usage_int(usage, "prompt_tokens"),
        completion_tokens=_usage_int(usage, "completion_tokens"),
        total_tokens=_usage_int(usage, "total_tokens"),
    )


class GigaChatLLM(BaseLLM):
    """GigaChat LLM provider."""

    def __init__(
        self,
        token_cache: TokenCache,
        http_client: httpx.AsyncClient,
        api_url: str = "https://gigachat.devices.sberbank.ru/api/v1/chat/completions",
        model: str = "GigaChat",
        max_tokens: int = 1024,
        temperature: float = 0.87,
    ):
        super().__init__(model, max_tokens, temperature)
        self.token_cache = token_cache
        self.api_url = api_url
        self._http = http_client

    @property
    def provider_name(self) -> str:
        return "gigachat"

    def build_payload(
        self,
        messages: list[Message],
        temperature: float,
        max_tokens: int,
    ) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [msg.to_payload() for msg in messages],
            "temperature": temperature,
            "top_p": TOP_P,
            "n": 1,
            "stream": False,
            "max_tokens": max_tokens,
        }

    async def complete(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> CompletionResult:
        """Generate a response from GigaChat."""
        temperature = validate_temperature(self.temperature if temperature is None else temperature)
        max_tokens = max_tokens or self.max_tokens

        try:
            token = await self.token_cache.get_access_token()
        except AuthError as e:
            logger.error("No access token, skipping completion call", error=str(e))
            raise ApiError("Access token unavailable", ApiErrorKind.AUTH_UNAVAILABLE, original_error=e) from e

        body = encode_payload(self.build_payload(messages, temperature, max_tokens))
        headers = {
            "Authorization": f"Bearer {token.value}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

        try:
            response = await self._http.post(self.api_url, content=body, headers=headers)
        except httpx.HTTPError as e:
            logger.error("GigaChat API request failed", error=str(e))
            raise ApiError("Completion request failed", ApiErrorKind.TRANSPORT, original_error=e) from e

        if response.status_code != 200:
            logger.error("GigaChat API error", status_code=response.status_code, body=response.text[:500])
            if response.status_code == 401:
                self.token_cache.invalidate()
            raise ApiError(
                f"Completion endpoint returned HTTP {response.status_code}",
                ApiErrorKind.STATUS,
                status_code=response.status_code,
                body=response.text,
            )

        result = parse_completion_response(response.text)
        logger.debug(
            "Completion received",
            prompt_tokens=result.prompt_tokens,
            completion_tokens=result.completion_tokens,
            total_tokens=result.total_tokens,
            empty=result.content is None,
        )
        return result
