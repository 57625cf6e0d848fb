"""Shared test doubles for github-mcp-server."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

import pytest
from github_mcp_server import tools
from github_mcp_server.audit import AuditEvent
from github_mcp_server.config import LimitsConfig, ServerConfig


@dataclass
class DummyAudit:
    events: list[AuditEvent] = field(default_factory=list)
    closed: bool = False

    def write_event(self, event: AuditEvent) -> None:
        self.events.append(event)

    def close(self) -> None:
        self.closed = True

    def measure_duration_ms(self, start: float) -> int:
        return int((time.monotonic() - start) * 1000)


class DummyGitHub:
    """In-memory stand-in for GitHubClient that records every call."""

    def __init__(self, result: object = None, error: Exception | None = None) -> None:
        self.result = {"ok": True} if result is None else result
        self.error = error
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def _call(self, method: str, arguments: dict[str, Any]) -> object:
        self.calls.append((method, dict(arguments)))
        if self.error is not None:
            raise self.error
        return self.result

    async def create_repository(self, arguments: dict[str, Any]) -> object:
        return await self._call("create_repository", arguments)

    async def create_issue(self, arguments: dict[str, Any]) -> object:
        return await self._call("create_issue", arguments)

    async def create_or_update_file(self, arguments: dict[str, Any]) -> object:
        return await self._call("create_or_update_file", arguments)

    async def get_file_contents(self, arguments: dict[str, Any]) -> object:
        return await self._call("get_file_contents", arguments)

    async def create_pull_request(self, arguments: dict[str, Any]) -> object:
        return await self._call("create_pull_request", arguments)

    async def fork_repository(self, arguments: dict[str, Any]) -> object:
        return await self._call("fork_repository", arguments)


def make_runtime(github: DummyGitHub | None = None) -> tools.Runtime:
    cfg = ServerConfig(token="tok", limits=LimitsConfig(max_backoff_s=0.0))
    return tools.Runtime(
        config=cfg,
        audit=DummyAudit(),  # type: ignore[arg-type]
        github=github or DummyGitHub(),  # type: ignore[arg-type]
    )


@pytest.fixture(autouse=True)
def _reset_runtime(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(tools, "_RUNTIME", None)
