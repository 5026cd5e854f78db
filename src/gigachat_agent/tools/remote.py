"""
Proxies for tools served by a remote tool server (/tools/list, /tools/call).
"""

import json
from typing import Any

import httpx
import structlog

from ..errors import ToolError, ToolErrorKind
from .base import BaseTool, ToolDescriptor, ToolResult

logger = structlog.get_logger()


def _error_text(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text
    if isinstance(payload, dict) and "error" in payload:
        return str(payload["error"])
    return response.text


class RemoteTool(BaseTool):
    """A tool executed by POSTing to the tool server's /tools/call."""

    def __init__(self, descriptor: ToolDescriptor, http_client: httpx.AsyncClient, base_url: str):
        self._descriptor = descriptor
        self._http = http_client
        self.base_url = base_url.rstrip("/")

    @property
    def name(self) -> str:
        return self._descriptor.name

    @property
    def description(self) -> str:
        return self._descriptor.description

    @property
    def parameters(self) -> dict[str, Any]:
        return self._descriptor.input_schema

    @property
    def descriptor(self) -> ToolDescriptor:
        return self._descriptor

    async def execute(self, **kwargs: Any) -> ToolResult:
        try:
            response = await self._http.post(
                f"{self.base_url}/tools/call",
                json={"name": self.name, "arguments": kwargs},
            )
        except httpx.HTTPError as e:
            raise ToolError(f"Tool server request failed: {e}", original_error=e) from e

        if response.status_code == 404:
            raise ToolError(_error_text(response), kind=ToolErrorKind.NOT_FOUND)
        if response.status_code != 200:
            raise ToolError(f"Tool server returned HTTP {response.status_code}: {_error_text(response)}")

        payload = response.json()
        result = payload.get("result") if isinstance(payload, dict) else payload
        return ToolResult(
            success=True,
            output=json.dumps(result, ensure_ascii=False),
            data=result,
        )


async def discover_remote_tools(http_client: httpx.AsyncClient, base_url: str) -> list[RemoteTool]:
    """Fetch /tools/list and wrap every advertised tool.

    Raises:
        ToolError: If the listing cannot be fetched or parsed.
    """
    base_url = base_url.rstrip("/")
    try:
        response = await http_client.get(f"{base_url}/tools/list")
        response.raise_for_status()
        payload = response.json()
        descriptors = [ToolDescriptor.from_dict(item) for item in payload["tools"]]
    except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
        raise ToolError(f"Could not list remote tools: {e}", original_error=e) from e

    logger.info("Discovered remote tools", tools=[d.name for d in descriptors])
    return [RemoteTool(d, http_client, base_url) for d in descriptors]
