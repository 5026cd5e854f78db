"""
LLM module for GigaChat access.

- TokenCache: OAuth client-credentials token with expiry-aware caching
- GigaChatLLM: chat-completions transport
- create_http_client: shared httpx client with optional custom trust anchor
"""

from .auth import AccessToken, TokenCache, parse_token_response
from .base import BaseLLM, CompletionResult, Message, Role
from .factory import create_llm, create_token_cache
from .gigachat import GigaChatLLM, encode_payload, parse_completion_response
from .http import create_http_client

__all__ = [
    "AccessToken",
    "TokenCache",
    "parse_token_response",
    "BaseLLM",
    "CompletionResult",
    "Message",
    "Role",
    "GigaChatLLM",
    "encode_payload",
    "parse_completion_response",
    "create_http_client",
    "create_llm",
    "create_token_cache",
]
