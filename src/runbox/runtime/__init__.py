"""Execution runtime — validation, sandboxing and result classification."""

from runbox.runtime.errors import (
    ConfigValidationError,
    RequestValidationError,
    RunboxError,
    SandboxError,
    SandboxTimeoutError,
    WorkspaceError,
)

__all__ = [
    "ConfigValidationError",
    "RequestValidationError",
    "RunboxError",
    "SandboxError",
    "SandboxTimeoutError",
    "WorkspaceError",
]
