"""Shared fixtures: a scripted in-memory sandbox and a service wired to it."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from runbox.config import RunboxSettings
from runbox.runtime.sandbox.models import LanguageProfile, SandboxResult
from runbox.runtime.service import ExecutionService

if TYPE_CHECKING:
    from runbox.runtime.sandbox.workspace import Workspace


class FakeSandbox:
    """Records what it was asked to run and replays a scripted outcome.

    *outcome* is a :class:`SandboxResult` to return, or an exception to raise.
    """

    def __init__(self, outcome: SandboxResult | Exception, *, delay: float = 0.0) -> None:
        self.outcome = outcome
        self.delay = delay
        self.calls: list[tuple[Workspace, LanguageProfile]] = []
        self.seen_sources: list[str] = []
        self.seen_stdin: list[str | None] = []
        self.files_existed: list[bool] = []
        self.cleanup_calls = 0

    async def execute(self, workspace: Workspace, profile: LanguageProfile) -> SandboxResult:
        self.calls.append((workspace, profile))
        self.files_existed.append(all(p.exists() for p in workspace.paths))
        self.seen_sources.append(workspace.source_path.read_text(encoding="utf-8"))
        self.seen_stdin.append(
            workspace.stdin_path.read_text(encoding="utf-8") if workspace.stdin_path else None
        )
        if self.delay:
            await asyncio.sleep(self.delay)
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome

    async def cleanup(self) -> None:
        self.cleanup_calls += 1


@pytest.fixture
def settings(tmp_path: Path) -> RunboxSettings:
    return RunboxSettings(scratch_dir=tmp_path / "scratch")


def make_service(
    settings: RunboxSettings, outcome: SandboxResult | Exception
) -> tuple[ExecutionService, list[FakeSandbox]]:
    """Build a service whose factory hands out a fresh FakeSandbox per call."""
    created: list[FakeSandbox] = []

    def factory() -> FakeSandbox:
        sandbox = FakeSandbox(outcome)
        created.append(sandbox)
        return sandbox

    return ExecutionService(settings, sandbox_factory=factory), created
