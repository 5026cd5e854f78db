"""
Shared HTTP client construction.

The trust anchor is passed in explicitly; components receive the built
client instead of inspecting each other's configuration.
"""

import ssl
from pathlib import Path

import httpx
import structlog

logger = structlog.get_logger()


def create_ssl_context(ca_bundle_path: str | Path) -> ssl.SSLContext:
    """Build an SSL context that additionally trusts the given root certificate."""
    path = Path(ca_bundle_path)
    if not path.is_file():
        raise FileNotFoundError(f"CA bundle not found: {path}")

    context = ssl.create_default_context()
    context.load_verify_locations(cafile=str(path))
    return context


def create_http_client(
    ca_bundle_path: str | Path | None = None,
    connect_timeout: float = 30.0,
    request_timeout: float = 120.0,
) -> httpx.AsyncClient:
    """Create the async HTTP client shared by the token cache and the LLM transport."""
    verify: ssl.SSLContext | bool = True
    if ca_bundle_path:
        verify = create_ssl_context(ca_bundle_path)
        logger.info("Using custom trust anchor", ca_bundle=str(ca_bundle_path))

    return httpx.AsyncClient(
        verify=verify,
        timeout=httpx.Timeout(request_timeout, connect=connect_timeout),
    )
