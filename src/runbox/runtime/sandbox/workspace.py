"""Workspace materialization and cleanup.

A workspace is the set of scratch files backing a single execution.  Every
file name is prefixed with the workspace id so concurrent executions sharing
one scratch directory never collide.
"""

from __future__ import annotations

import logging
import re
import tempfile
import time
import uuid
from pathlib import Path

from runbox.runtime.errors import WorkspaceError
from runbox.runtime.sandbox.profiles import JAVA

logger = logging.getLogger(__name__)

JAVA_DEFAULT_CLASS = "Main"
JS_SOURCE_NAME = "code.js"
STDIN_NAME = "input.txt"

_PUBLIC_CLASS_RE = re.compile(r"public\s+class\s+(\w+)")


def new_workspace_id() -> str:
    """Return a nanosecond timestamp joined with a random suffix."""
    return f"{time.time_ns()}_{uuid.uuid4().hex[:8]}"


def java_class_name(source: str) -> str:
    """Best-effort sniff of the public class name, falling back to ``Main``."""
    match = _PUBLIC_CLASS_RE.search(source)
    return match.group(1) if match else JAVA_DEFAULT_CLASS


class Workspace:
    """Scratch files for one execution.

    ``source_name`` is the file name the program must have inside the
    container (``<Class>.java`` for Java, ``code.js`` for JavaScript).
    """

    def __init__(
        self,
        workspace_id: str,
        language: str,
        source_path: Path,
        source_name: str,
        *,
        class_name: str | None = None,
        stdin_path: Path | None = None,
    ) -> None:
        self.id = workspace_id
        self.language = language
        self.source_path = source_path
        self.source_name = source_name
        self.class_name = class_name
        self.stdin_path = stdin_path
        self._cleaned = False

    @property
    def paths(self) -> list[Path]:
        paths = [self.source_path]
        if self.stdin_path is not None:
            paths.append(self.stdin_path)
        return paths

    @property
    def cleaned(self) -> bool:
        return self._cleaned

    def cleanup(self) -> None:
        """Delete every file of this workspace; later calls are no-ops.

        Deletion failures are logged, never raised.
        """
        if self._cleaned:
            return
        self._cleaned = True
        for path in self.paths:
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                logger.warning("Failed to remove scratch file %s: %s", path, exc)


class WorkspaceMaterializer:
    """Writes submitted source (and optional stdin) into the scratch area."""

    def __init__(self, scratch_dir: Path | None = None) -> None:
        self._scratch_dir = scratch_dir or Path(tempfile.gettempdir())

    @property
    def scratch_dir(self) -> Path:
        return self._scratch_dir

    def materialize(self, code: str, language: str, stdin: str = "") -> Workspace:
        """Create the workspace files for *code*.

        Stdin is only written for Java, and only when it is not blank.

        Raises:
            WorkspaceError: If any file cannot be written.  Files written
                before the failure are removed again.
        """
        workspace_id = new_workspace_id()

        class_name: str | None = None
        if language == JAVA:
            class_name = java_class_name(code)
            source_name = f"{class_name}.java"
        else:
            source_name = JS_SOURCE_NAME

        workspace = Workspace(
            workspace_id,
            language,
            self._scratch_dir / f"{workspace_id}_{source_name}",
            source_name,
            class_name=class_name,
        )

        try:
            self._scratch_dir.mkdir(parents=True, exist_ok=True)
            workspace.source_path.write_text(code, encoding="utf-8")
            if language == JAVA and stdin.strip():
                workspace.stdin_path = self._scratch_dir / f"{workspace_id}_{STDIN_NAME}"
                workspace.stdin_path.write_text(stdin, encoding="utf-8")
        except OSError as exc:
            workspace.cleanup()
            raise WorkspaceError(f"Cannot write workspace {workspace_id}: {exc}") from exc

        logger.debug("Materialized workspace %s in %s", workspace_id, self._scratch_dir)
        return workspace
