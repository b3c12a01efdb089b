"""Language profiles: images, limits, mounts and in-container entrypoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from runbox.runtime.errors import RequestValidationError
from runbox.runtime.sandbox.models import LanguageProfile

if TYPE_CHECKING:
    from runbox.runtime.sandbox.workspace import Workspace

JAVASCRIPT = "javascript"
JAVA = "java"

APP_DIR = "/app"
SCRATCH_DIR = "/tmp"

# Exit status of coreutils ``timeout`` when the limit is hit.
TIMEOUT_EXIT_CODE = 124
# busybox ``timeout`` execs the program, so expiry surfaces as SIGTERM (143)
# or SIGKILL (137) from the program itself.
SIGNAL_EXIT_CODES = frozenset({137, 143})

DEFAULT_PROFILES: dict[str, LanguageProfile] = {
    JAVASCRIPT: LanguageProfile(
        language=JAVASCRIPT,
        image="node:18-alpine",
        memory_limit="128m",
        scratch_mount=f"{SCRATCH_DIR}:rw,noexec,nosuid,size=10m",
        timeout=10,
    ),
    JAVA: LanguageProfile(
        language=JAVA,
        image="openjdk:11-jdk-slim",
        memory_limit="256m",
        scratch_mount=f"{SCRATCH_DIR}:rw,exec,size=20m",
        timeout=15,
    ),
}


def resolve_language(language: str | None, *, strict: bool = False) -> str:
    """Normalise a requested language name.

    Missing values default to JavaScript.  Unknown values fall back to
    JavaScript too, unless *strict* is set, in which case they are rejected.
    """
    if language is None or not language.strip():
        return JAVASCRIPT
    name = language.strip().lower()
    if name in DEFAULT_PROFILES:
        return name
    if strict:
        supported = ", ".join(sorted(DEFAULT_PROFILES))
        raise RequestValidationError(f"Unsupported language '{language}' (supported: {supported})")
    return JAVASCRIPT


def mounts(workspace: Workspace) -> list[tuple[str, str]]:
    """Return ``(host_path, container_path)`` pairs, all mounted read-only."""
    pairs = [(str(workspace.source_path), f"{APP_DIR}/{workspace.source_name}")]
    if workspace.stdin_path is not None:
        pairs.append((str(workspace.stdin_path), f"{APP_DIR}/input.txt"))
    return pairs


def entrypoint(profile: LanguageProfile, workspace: Workspace) -> list[str]:
    """Build the container command, wrapped in ``timeout`` for the profile limit."""
    limit = f"{profile.timeout}s"
    source = f"{APP_DIR}/{workspace.source_name}"

    if profile.language == JAVA:
        class_name = workspace.class_name or workspace.source_name.removesuffix(".java")
        script = f"javac {source} -d {SCRATCH_DIR} && java -cp {SCRATCH_DIR} {class_name}"
        if workspace.stdin_path is not None:
            script += f" < {APP_DIR}/input.txt"
        return ["timeout", limit, "sh", "-c", script]

    return ["timeout", limit, "node", source]


def timeout_message(profile: LanguageProfile) -> str:
    return f"Code execution timed out ({profile.timeout}s limit)"
