"""Sandbox subsystem — isolated execution of user code."""

from runbox.runtime.sandbox.docker_sandbox import DockerSandbox
from runbox.runtime.sandbox.executor import SandboxExecutor
from runbox.runtime.sandbox.models import (
    ExecutionRequest,
    ExecutionResult,
    LanguageProfile,
    SandboxConfig,
    SandboxResult,
)
from runbox.runtime.sandbox.workspace import Workspace, WorkspaceMaterializer

__all__ = [
    "DockerSandbox",
    "ExecutionRequest",
    "ExecutionResult",
    "LanguageProfile",
    "SandboxConfig",
    "SandboxExecutor",
    "SandboxResult",
    "Workspace",
    "WorkspaceMaterializer",
]
