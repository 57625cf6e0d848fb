"""Tool registry and dispatch layer.

This module:
- defines the exposed tools (name, description, input schema, handler)
- builds a per-server runtime from host-provided config
- validates arguments and runs exactly one handler per call
- wraps GitHub responses into the MCP text content envelope
"""

from __future__ import annotations

import base64
import json
import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from . import schemas
from .audit import AuditLogger, build_event, new_correlation_id
from .config import ServerConfig, load_config_from_env
from .errors import (ToolError, missing_arguments, unknown_operation,
                     upstream_failed, validation_failed)
from .github_client import GitHubAPIError, GitHubClient

logger = logging.getLogger(__name__)

Handler = Callable[["Runtime", dict[str, Any]], Awaitable[Any]]


@dataclass(frozen=True, slots=True)
class Runtime:
    """Per-server runtime dependencies shared across tool calls."""

    config: ServerConfig
    audit: AuditLogger
    github: GitHubClient


@dataclass(frozen=True, slots=True)
class Operation:
    """A named tool: what callers see plus the code that runs it."""

    name: str
    description: str
    input_schema: Mapping[str, Any]
    handler: Handler


_RUNTIME: Runtime | None = None


def initialize_runtime_from_env() -> Runtime:
    """Initialize and cache runtime from environment.

    Called at server startup (fail-fast), and can also be used lazily.
    """
    global _RUNTIME  # pylint: disable=global-statement
    if _RUNTIME is not None:
        return _RUNTIME

    config = load_config_from_env()
    audit = AuditLogger(
        sink_path=config.audit_log_path,
        max_bytes=config.audit_max_bytes,
        max_backups=config.audit_max_backups,
    )
    github = GitHubClient(token=config.token, limits=config.limits, api_base_url=config.api_base_url)

    _RUNTIME = Runtime(config=config, audit=audit, github=github)
    return _RUNTIME


async def _tool_create_repository(runtime: Runtime, arguments: dict[str, Any]) -> Any:
    return await runtime.github.create_repository(arguments)


async def _tool_create_issue(runtime: Runtime, arguments: dict[str, Any]) -> Any:
    return await runtime.github.create_issue(arguments)


async def _tool_create_or_update_file(runtime: Runtime, arguments: dict[str, Any]) -> Any:
    # Updating an existing file needs its blob sha; GitHub rejects the PUT otherwise.
    encoded = base64.b64encode(arguments["content"].encode("utf-8")).decode("ascii")
    return await runtime.github.create_or_update_file({**arguments, "content": encoded})


async def _tool_get_file_contents(runtime: Runtime, arguments: dict[str, Any]) -> Any:
    return await runtime.github.get_file_contents(arguments)


async def _tool_create_pull_request(runtime: Runtime, arguments: dict[str, Any]) -> Any:
    return await runtime.github.create_pull_request(arguments)


async def _tool_fork_repository(runtime: Runtime, arguments: dict[str, Any]) -> Any:
    return await runtime.github.fork_repository(arguments)


_OPERATION_LIST: tuple[Operation, ...] = (
    Operation(
        name="create_repository",
        description="Create a new GitHub repository in your account",
        input_schema=schemas.CREATE_REPOSITORY_SCHEMA,
        handler=_tool_create_repository,
    ),
    Operation(
        name="create_issue",
        description="Create a new issue in a GitHub repository",
        input_schema=schemas.CREATE_ISSUE_SCHEMA,
        handler=_tool_create_issue,
    ),
    Operation(
        name="create_or_update_file",
        description=(
            "Create or update a single file in a GitHub repository. "
            "Updating an existing file requires the SHA of the file being replaced."
        ),
        input_schema=schemas.CREATE_OR_UPDATE_FILE_SCHEMA,
        handler=_tool_create_or_update_file,
    ),
    Operation(
        name="get_file_contents",
        description="Get the contents of a file or directory from a GitHub repository",
        input_schema=schemas.GET_FILE_CONTENTS_SCHEMA,
        handler=_tool_get_file_contents,
    ),
    Operation(
        name="create_pull_request",
        description="Create a new pull request in a GitHub repository",
        input_schema=schemas.CREATE_PULL_REQUEST_SCHEMA,
        handler=_tool_create_pull_request,
    ),
    Operation(
        name="fork_repository",
        description="Fork a GitHub repository to your account or specified organization",
        input_schema=schemas.FORK_REPOSITORY_SCHEMA,
        handler=_tool_fork_repository,
    ),
)

OPERATIONS: Mapping[str, Operation] = MappingProxyType({op.name: op for op in _OPERATION_LIST})


def list_operations() -> list[dict[str, Any]]:
    """Describe every tool in declaration order."""
    return [
        {"name": op.name, "description": op.description, "inputSchema": dict(op.input_schema)}
        for op in OPERATIONS.values()
    ]


def to_result_envelope(data: Any) -> dict[str, Any]:
    """Wrap a raw GitHub response body as MCP text content."""
    return {"content": [{"type": "text", "text": json.dumps(data, indent=2, default=str)}]}


def _target_repo_from_args(arguments: Mapping[str, Any] | None) -> str:
    if not isinstance(arguments, Mapping):
        return "<unknown>"
    owner = arguments.get("owner")
    repo = arguments.get("repo") or arguments.get("name")
    if isinstance(owner, str) and isinstance(repo, str) and owner and repo:
        return f"{owner}/{repo}"
    if isinstance(repo, str) and repo:
        return repo
    return "<unknown>"


def _resolve(name: str, arguments: Mapping[str, Any] | None) -> tuple[Operation, dict[str, Any]]:
    if arguments is None:
        raise missing_arguments()

    op = OPERATIONS.get(name)
    if op is None:
        raise unknown_operation(name, list(OPERATIONS))

    result = schemas.validate_arguments(op.input_schema, arguments)
    if not result.ok:
        raise validation_failed(name, result.errors)
    return op, result.value or {}


async def dispatch_tool(
    name: str,
    arguments: Mapping[str, Any] | None,
    *,
    runtime: Runtime | None = None,
) -> dict[str, Any]:
    """Run one tool call end to end.

    Returns the result envelope on success.

    Raises:
        ToolError: MissingArguments, UnknownOperation, ValidationError or UpstreamError.
    """
    correlation_id = new_correlation_id()
    target_repo = _target_repo_from_args(arguments)
    start = time.monotonic()

    def _audit(audit: AuditLogger, outcome: str, reason: str | None = None) -> None:
        audit.write_event(
            build_event(
                correlation_id=correlation_id,
                operation=name,
                target_repo=target_repo,
                outcome=outcome,
                reason=reason,
                duration_ms=audit.measure_duration_ms(start),
            )
        )

    logger.info("Tool called: %s", name)
    try:
        op, validated = _resolve(name, arguments)
    except ToolError as err:
        # Rejected before any runtime exists: audit to stderr only.
        active = runtime or _RUNTIME
        _audit(active.audit if active is not None else AuditLogger(), "rejected", err.message)
        raise

    if runtime is None:
        runtime = initialize_runtime_from_env()

    try:
        data = await op.handler(runtime, validated)
    except GitHubAPIError as exc:
        err = upstream_failed(exc.message, status_code=exc.status_code, hint=exc.hint)
        logger.warning("Tool %s failed upstream: %s", name, exc)
        _audit(runtime.audit, "failed", str(exc))
        raise err from exc
    except Exception:
        _audit(runtime.audit, "failed", "Internal error")
        raise

    _audit(runtime.audit, "succeeded")
    return to_result_envelope(data)
