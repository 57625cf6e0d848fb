"""Configuration loading tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from github_mcp_server import tools
from github_mcp_server.config import load_config_from_env
from github_mcp_server.errors import CONFIG_ERROR, ToolError

_ENV_VARS = (
    "GITHUB_PERSONAL_ACCESS_TOKEN",
    "GITHUB_API_URL",
    "GITHUB_MCP_TIMEOUT_S",
    "GITHUB_MCP_MAX_ATTEMPTS",
    "GITHUB_MCP_AUDIT_LOG_PATH",
    "GITHUB_MCP_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_missing_token_is_config_error() -> None:
    with pytest.raises(ToolError) as exc:
        load_config_from_env()

    assert exc.value.code == CONFIG_ERROR
    assert "GITHUB_PERSONAL_ACCESS_TOKEN" in exc.value.message


def test_blank_token_is_config_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GITHUB_PERSONAL_ACCESS_TOKEN", "   ")

    with pytest.raises(ToolError):
        load_config_from_env()


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GITHUB_PERSONAL_ACCESS_TOKEN", "tok")

    cfg = load_config_from_env()

    assert cfg.token == "tok"
    assert cfg.api_base_url == "https://api.github.com"
    assert cfg.limits.total_timeout_s == 60.0
    assert cfg.limits.max_attempts == 3
    assert cfg.audit_log_path is None
    assert cfg.log_level == "INFO"


def test_token_is_not_in_repr(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GITHUB_PERSONAL_ACCESS_TOKEN", "ghp_abcdef")

    assert "ghp_abcdef" not in repr(load_config_from_env())


def test_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("GITHUB_PERSONAL_ACCESS_TOKEN", "tok")
    monkeypatch.setenv("GITHUB_API_URL", "https://ghe.example.com/api/v3/")
    monkeypatch.setenv("GITHUB_MCP_TIMEOUT_S", "12.5")
    monkeypatch.setenv("GITHUB_MCP_MAX_ATTEMPTS", "1")
    monkeypatch.setenv("GITHUB_MCP_AUDIT_LOG_PATH", str(tmp_path / "audit.jsonl"))
    monkeypatch.setenv("GITHUB_MCP_LOG_LEVEL", "debug")

    cfg = load_config_from_env()

    assert cfg.api_base_url == "https://ghe.example.com/api/v3"
    assert cfg.limits.total_timeout_s == 12.5
    assert cfg.limits.max_attempts == 1
    assert cfg.audit_log_path == tmp_path / "audit.jsonl"
    assert cfg.log_level == "DEBUG"


@pytest.mark.parametrize(
    "name,value",
    [
        ("GITHUB_API_URL", "http://api.github.com"),
        ("GITHUB_MCP_TIMEOUT_S", "soon"),
        ("GITHUB_MCP_TIMEOUT_S", "0"),
        ("GITHUB_MCP_MAX_ATTEMPTS", "two"),
        ("GITHUB_MCP_MAX_ATTEMPTS", "0"),
        ("GITHUB_MCP_AUDIT_LOG_PATH", "relative/audit.jsonl"),
        ("GITHUB_MCP_LOG_LEVEL", "chatty"),
    ],
)
def test_invalid_settings_are_config_errors(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv("GITHUB_PERSONAL_ACCESS_TOKEN", "tok")
    monkeypatch.setenv(name, value)

    with pytest.raises(ToolError) as exc:
        load_config_from_env()

    assert exc.value.code == CONFIG_ERROR
    assert name in exc.value.message


def test_initialize_runtime_from_env_caches_runtime(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GITHUB_PERSONAL_ACCESS_TOKEN", "tok")

    r1 = tools.initialize_runtime_from_env()
    r2 = tools.initialize_runtime_from_env()

    assert r1 is r2
    assert r1.github.api_base_url == "https://api.github.com"
