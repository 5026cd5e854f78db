"""
FastAPI tool server.

Serves the local tools the agent can call:
- GET  /datetime       current date/time in a timezone
- GET  /tools/list     tool descriptors
- POST /tools/call     execute a tool by name
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone as dt_timezone
from typing import Any, AsyncGenerator, Callable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import anyio.to_thread
import structlog
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..config import Settings, get_settings
from ..tools.base import ToolDescriptor

logger = structlog.get_logger()

DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

DATETIME_DESCRIPTOR = ToolDescriptor(
    name="get_current_datetime",
    description=(
        "Get the current date and time in the given timezone. "
        "UTC is used when no timezone is specified."
    ),
    input_schema={
        "type": "object",
        "properties": {
            "timezone": {
                "type": "string",
                "description": 'IANA timezone, e.g. "Europe/Moscow" or "America/New_York". Defaults to UTC.',
            },
        },
        "required": [],
    },
)


def current_datetime(timezone: str | None = None) -> dict[str, Any]:
    """Current time in the given IANA zone.

    ``current_datetime`` is the UTC instant in ``YYYY-MM-DDTHH:MM:SSZ`` form;
    ``local_datetime`` is the same instant as wall time in the requested zone,
    with its UTC offset.

    Raises:
        ValueError: If the timezone identifier is unknown.
    """
    zone_name = timezone or "UTC"
    try:
        zone = ZoneInfo(zone_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone: {zone_name}") from e

    now = datetime.now(dt_timezone.utc)
    return {
        "current_datetime": now.strftime(DATETIME_FORMAT),
        "local_datetime": now.astimezone(zone).isoformat(timespec="seconds"),
        "timezone": zone.key,
        "timestamp": int(now.timestamp() * 1000),
    }


ToolHandler = Callable[..., dict[str, Any]]

SERVER_TOOLS: dict[str, tuple[ToolDescriptor, ToolHandler]] = {
    DATETIME_DESCRIPTOR.name: (DATETIME_DESCRIPTOR, current_datetime),
}


class ToolCallRequest(BaseModel):
    """Body of POST /tools/call."""

    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the tool server."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        # Sync endpoints run in AnyIO's worker threads
        limiter = anyio.to_thread.current_default_thread_limiter()
        limiter.total_tokens = settings.tool_server_threads
        logger.info(
            "Tool server started",
            tools=list(SERVER_TOOLS),
            worker_threads=settings.tool_server_threads,
        )
        yield
        logger.info("Tool server stopped")

    app = FastAPI(
        title="GigaChat-Agent tool server",
        description="Local tools callable by the GigaChat agent",
        version="0.1.0",
        lifespan=lifespan,
    )

    @app.get("/datetime")
    def get_datetime(timezone: str | None = None):
        """Current date and time."""
        try:
            return current_datetime(timezone)
        except ValueError as e:
            return JSONResponse(status_code=400, content={"error": str(e)})

    @app.get("/tools/list")
    def list_tools():
        """List available tools."""
        return {"tools": [descriptor.to_dict() for descriptor, _ in SERVER_TOOLS.values()]}

    @app.post("/tools/call")
    def call_tool(request: ToolCallRequest):
        """Execute a tool by name."""
        entry = SERVER_TOOLS.get(request.name)
        if entry is None:
            return JSONResponse(status_code=404, content={"error": f"Tool '{request.name}' not found"})

        _, handler = entry
        try:
            result = handler(**request.arguments)
        except Exception as e:
            logger.error("Tool call failed", tool_name=request.name, error=str(e))
            return JSONResponse(status_code=500, content={"error": f"Tool execution failed: {e}"})

        return {"name": request.name, "result": result}

    return app
