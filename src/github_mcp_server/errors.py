"""Error types surfaced to MCP callers.

Every failed tool call ends in a ToolError whose ``code`` names the failure kind.
Errors are never retried by the server; the caller decides what to do next.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

MISSING_ARGUMENTS = "MissingArguments"
UNKNOWN_OPERATION = "UnknownOperation"
VALIDATION_ERROR = "ValidationError"
UPSTREAM_ERROR = "UpstreamError"
CONFIG_ERROR = "Config"


@dataclass(frozen=True, slots=True)
class FieldError:
    """A single schema violation at a dotted argument path."""

    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


@dataclass(frozen=True, slots=True)
class ToolError(Exception):
    """An error returned to the calling agent.

    Must never include the configured access token.
    """

    code: str
    message: str
    hint: str | None = None
    status_code: int | None = None
    field_errors: tuple[FieldError, ...] = ()

    def __str__(self) -> str:
        text = f"{self.code}: {self.message}"
        if self.hint:
            text = f"{text} ({self.hint})"
        return text


def missing_arguments() -> ToolError:
    """The call omitted the arguments field entirely."""
    return ToolError(code=MISSING_ARGUMENTS, message="Arguments are required")


def unknown_operation(name: str, available: list[str]) -> ToolError:
    return ToolError(
        code=UNKNOWN_OPERATION,
        message=f"Unknown tool: {name}",
        hint=f"Available tools: {', '.join(available)}",
    )


def validation_failed(name: str, field_errors: tuple[FieldError, ...]) -> ToolError:
    """Aggregate every field violation into one error."""
    details = "; ".join(str(err) for err in field_errors)
    return ToolError(
        code=VALIDATION_ERROR,
        message=f"Invalid arguments for {name}: {details}",
        field_errors=field_errors,
    )


def upstream_failed(message: str, *, status_code: int | None = None, hint: str | None = None) -> ToolError:
    """Wrap a failed GitHub call without masking its cause."""
    return ToolError(code=UPSTREAM_ERROR, message=message, hint=hint, status_code=status_code)


def to_error_result(err: ToolError) -> dict[str, Any]:
    """Build the JSON error document sent back as tool output."""
    out: dict[str, Any] = {"ok": False, "code": err.code, "message": err.message}
    if err.hint:
        out["hint"] = err.hint
    if err.status_code is not None:
        out["status_code"] = err.status_code
    if err.field_errors:
        out["errors"] = [{"path": e.path, "message": e.message} for e in err.field_errors]
    return out
