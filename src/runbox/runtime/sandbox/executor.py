"""SandboxExecutor protocol — the common interface for sandbox implementations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from runbox.runtime.sandbox.models import LanguageProfile, SandboxResult
    from runbox.runtime.sandbox.workspace import Workspace


@runtime_checkable
class SandboxExecutor(Protocol):
    """Runs a materialized workspace in an isolated environment.

    Implementations are instantiated per execution; ``execute()`` runs the
    program and ``cleanup()`` releases whatever it created (e.g. containers).
    """

    async def execute(self, workspace: Workspace, profile: LanguageProfile) -> SandboxResult:
        """Run the workspace program and return the raw result.

        Raises ``SandboxTimeoutError`` when the host-side wait expires and
        ``SandboxError`` when the isolation layer itself fails.
        """
        ...

    async def cleanup(self) -> None:
        """Release any resources held by this executor."""
        ...
