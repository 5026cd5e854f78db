"""
LLM factory for creating the GigaChat transport and its token cache.
"""

import httpx

from ..config import GigaChatConfig, Settings
from .auth import TokenCache
from .gigachat import GigaChatLLM


def create_token_cache(config: GigaChatConfig, http_client: httpx.AsyncClient) -> TokenCache:
    """Create the token cache for the configured client identity."""
    return TokenCache(
        client_id=config.client_id,
        client_secret=config.client_secret,
        token_url=config.token_url,
        http_client=http_client,
        scope=config.scope,
    )


def create_llm(
    http_client: httpx.AsyncClient,
    config: GigaChatConfig | None = None,
    settings: Settings | None = None,
) -> GigaChatLLM:
    """Create a GigaChat LLM instance based on configuration.

    The HTTP client is passed in so the token cache and the completion
    transport share one connection pool and one trust configuration.
    """
    if config is None:
        if settings is None:
            from ..config import get_settings
            settings = get_settings()
        config = settings.get_gigachat_config()

    return GigaChatLLM(
        token_cache=create_token_cache(config, http_client),
        http_client=http_client,
        api_url=config.api_url,
        model=config.model,
        max_tokens=config.max_tokens,
        temperature=config.temperature,
    )
