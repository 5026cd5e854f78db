"""
Current date/time tool backed by the tool server's /datetime endpoint.
"""

from typing import Any

import httpx
import structlog

from ..errors import ToolError
from .base import BaseTool, ToolResult

logger = structlog.get_logger()


class DateTimeTool(BaseTool):
    """Tool for getting the current date and time in a timezone."""

    def __init__(self, http_client: httpx.AsyncClient, base_url: str = "http://localhost:8080"):
        self._http = http_client
        self.base_url = base_url.rstrip("/")

    @property
    def name(self) -> str:
        return "get_current_datetime"

    @property
    def description(self) -> str:
        return (
            "Get the current date and time in the given timezone. "
            "UTC is used when no timezone is specified."
        )

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "timezone": {
                    "type": "string",
                    "description": 'IANA timezone, e.g. "Europe/Moscow" or "America/New_York". Defaults to UTC.',
                },
            },
            "required": [],
        }

    async def execute(self, timezone: str | None = None) -> ToolResult:
        """Query the datetime endpoint."""
        timezone = timezone or "UTC"
        try:
            response = await self._http.get(
                f"{self.base_url}/datetime",
                params={"timezone": timezone},
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            raise ToolError(f"Datetime server request failed: {e}", original_error=e) from e

        if response.status_code != 200:
            raise ToolError(
                f"Datetime server returned HTTP {response.status_code}: {response.text}"
            )

        return ToolResult(
            success=True,
            output=response.text,
            data=response.json(),
        )
