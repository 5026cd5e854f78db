"""
Error taxonomy for GigaChat-Agent.

Every failure carries the stage it happened in (auth, completion, tool,
compression, file) so the shell can tell the user where things went wrong
without crashing the session.
"""

from enum import Enum
from typing import Any


class GigaChatAgentError(Exception):
    """Base class for all agent errors."""

    stage = "agent"

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.original_error = original_error
        self.details = details or {}

    def __str__(self) -> str:
        text = f"[{self.stage}] {self.message}"
        if self.original_error is not None:
            text += f" ({type(self.original_error).__name__}: {self.original_error})"
        return text


class AuthError(GigaChatAgentError):
    """Access token could not be obtained."""

    stage = "auth"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.status_code = status_code
        self.body = body


class ApiErrorKind(str, Enum):
    """Why a completion call failed."""

    AUTH_UNAVAILABLE = "auth_unavailable"
    STATUS = "status"
    TRANSPORT = "transport"
    PARSE = "parse"


class ApiError(GigaChatAgentError):
    """Completion call failed."""

    stage = "completion"

    def __init__(
        self,
        message: str,
        kind: ApiErrorKind,
        status_code: int | None = None,
        body: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.kind = kind
        self.status_code = status_code
        self.body = body


class ToolErrorKind(str, Enum):
    """Why a tool invocation failed."""

    NOT_FOUND = "not_found"
    HANDLER_ERROR = "handler_error"
    TIMEOUT = "timeout"


class ToolError(GigaChatAgentError):
    """Tool could not be found or its handler failed."""

    stage = "tool"

    def __init__(self, message: str, kind: ToolErrorKind = ToolErrorKind.HANDLER_ERROR, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.kind = kind


class CompressionError(GigaChatAgentError):
    """Summarization during compression failed; history was truncated anyway."""

    stage = "compression"


class PromptFileError(GigaChatAgentError):
    """A prompt file could not be read."""

    stage = "file"
