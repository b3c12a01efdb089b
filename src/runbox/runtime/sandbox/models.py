"""Data models for the sandbox subsystem."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SandboxConfig(BaseModel):
    """Host-side settings shared by every container a sandbox launches."""

    docker_binary: str = Field(default="docker", description="Path or name of the docker CLI.")
    cpu_limit: float = Field(default=0.5, description="CPU quota (number of cores).")
    user: str = Field(default="nobody", description="Unprivileged user inside the container.")
    pids_limit: int = Field(default=64, description="Max processes inside the container.")
    host_grace: float = Field(
        default=5.0,
        description="Seconds added to the in-container timeout before the host gives up waiting.",
    )
    max_output_bytes: int = Field(
        default=200_000,
        description="Per-stream cap on container log bytes read into memory.",
    )


class LanguageProfile(BaseModel):
    """Per-language container profile."""

    model_config = ConfigDict(frozen=True)

    language: str = Field(..., description="Language key, e.g. 'javascript'.")
    image: str = Field(..., description="Docker image providing the runtime.")
    memory_limit: str = Field(..., description="Memory cap (Docker format, e.g. '128m').")
    scratch_mount: str = Field(..., description="tmpfs mount options for the writable scratch area.")
    timeout: int = Field(..., description="In-container wall-clock limit in seconds.")


class ExecutionRequest(BaseModel):
    """A request to run a snippet of user code."""

    code: str | None = Field(default=None, description="Source code to execute.")
    language: str | None = Field(default=None, description="'javascript' (default) or 'java'.")
    input: str | None = Field(default=None, description="Optional stdin payload (java only).")


class SandboxResult(BaseModel):
    """Raw outcome of a container run, before classification."""

    exit_code: int = Field(..., description="Container exit code.")
    stdout: str = Field(default="", description="Captured stdout.")
    stderr: str = Field(default="", description="Captured stderr.")


class ExecutionResult(BaseModel):
    """Classified result returned to callers.

    Serialises with the camelCase ``executionTime`` key the web client reads.
    """

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    output: str | None = None
    error: str | None = None
    execution_time: int | None = Field(default=None, alias="executionTime")

    def to_response(self) -> dict[str, object]:
        return self.model_dump(by_alias=True, exclude_none=True)
