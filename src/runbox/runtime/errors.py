"""Shared error types for the execution runtime."""


class RunboxError(Exception):
    """Base error for all runbox failures."""


class RequestValidationError(RunboxError):
    """An execution request was rejected before any sandbox work began."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class SandboxError(RunboxError):
    """The isolation layer itself failed (launch, wait, or log collection)."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__("Sandbox error" + (f": {detail}" if detail else ""))


class SandboxTimeoutError(SandboxError):
    """The host-side wait for a sandbox exceeded its budget."""

    def __init__(self, timeout: float, *, stdout: str = "", stderr: str = "") -> None:
        self.timeout = timeout
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(f"Execution timed out after {timeout}s")


class WorkspaceError(SandboxError):
    """Scratch files for an execution could not be written."""


class ConfigValidationError(RunboxError):
    """Raised when a settings file fails parsing or validation."""
