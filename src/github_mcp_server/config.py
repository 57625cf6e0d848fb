"""Configuration loading for github-mcp-server.

Configuration is supplied by the host environment (e.g., MCP client config), not by the agent.
The access token is a secret and must never be emitted to agents, logs, or audit records.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from .errors import CONFIG_ERROR, ToolError

DEFAULT_API_BASE_URL = "https://api.github.com"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True, slots=True)
class LimitsConfig:
    """Timeouts and retry limits for the GitHub client."""

    # Network
    total_timeout_s: float = 60.0
    connect_timeout_s: float = 5.0
    read_timeout_s: float = 30.0

    # Retries
    max_attempts: int = 3
    max_backoff_s: float = 5.0


@dataclass(frozen=True, slots=True)
class ServerConfig:
    """Host-provided server configuration."""

    token: str = field(repr=False)
    api_base_url: str = DEFAULT_API_BASE_URL
    audit_log_path: Path | None = None
    audit_max_bytes: int = 5 * 1024 * 1024
    audit_max_backups: int = 2
    log_level: str = "INFO"
    limits: LimitsConfig = field(default_factory=LimitsConfig)


def _parse_float(name: str, value: str | None, default: float) -> float:
    if not value:
        return default
    try:
        parsed = float(value)
    except ValueError as exc:
        raise ToolError(code=CONFIG_ERROR, message=f"{name} must be a number") from exc
    if parsed <= 0:
        raise ToolError(code=CONFIG_ERROR, message=f"{name} must be positive")
    return parsed


def _parse_int(name: str, value: str | None, default: int) -> int:
    if not value:
        return default
    try:
        parsed = int(value)
    except ValueError as exc:
        raise ToolError(code=CONFIG_ERROR, message=f"{name} must be an integer") from exc
    if parsed < 1:
        raise ToolError(code=CONFIG_ERROR, message=f"{name} must be >= 1")
    return parsed


def load_config_from_env() -> ServerConfig:
    """Load and validate configuration from environment variables.

    Raises:
        ToolError: If the access token is missing or a setting is malformed.
    """
    token = os.getenv("GITHUB_PERSONAL_ACCESS_TOKEN", "").strip()
    if not token:
        raise ToolError(
            code=CONFIG_ERROR,
            message="GITHUB_PERSONAL_ACCESS_TOKEN environment variable is not set",
        )

    api_base_url = (os.getenv("GITHUB_API_URL") or DEFAULT_API_BASE_URL).rstrip("/")
    if not api_base_url.startswith("https://"):
        raise ToolError(code=CONFIG_ERROR, message="GITHUB_API_URL must be an https:// URL")

    limits = LimitsConfig(
        total_timeout_s=_parse_float("GITHUB_MCP_TIMEOUT_S", os.getenv("GITHUB_MCP_TIMEOUT_S"), 60.0),
        max_attempts=_parse_int("GITHUB_MCP_MAX_ATTEMPTS", os.getenv("GITHUB_MCP_MAX_ATTEMPTS"), 3),
    )

    audit_path_raw = os.getenv("GITHUB_MCP_AUDIT_LOG_PATH")
    audit_path: Path | None = None
    if audit_path_raw:
        p = Path(audit_path_raw)
        if not p.is_absolute():
            raise ToolError(code=CONFIG_ERROR, message="GITHUB_MCP_AUDIT_LOG_PATH must be an absolute path when set")
        audit_path = p

    log_level = (os.getenv("GITHUB_MCP_LOG_LEVEL") or "INFO").strip().upper()
    if log_level not in _LOG_LEVELS:
        raise ToolError(code=CONFIG_ERROR, message=f"GITHUB_MCP_LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}")

    return ServerConfig(
        token=token,
        api_base_url=api_base_url,
        audit_log_path=audit_path,
        log_level=log_level,
        limits=limits,
    )
