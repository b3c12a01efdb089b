"""DockerSandbox — runs a workspace program in an ephemeral Docker container.

Uses the ``docker`` CLI via asyncio subprocesses (no docker-py dependency).
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from runbox.runtime.errors import SandboxError, SandboxTimeoutError
from runbox.runtime.sandbox import profiles
from runbox.runtime.sandbox.models import LanguageProfile, SandboxConfig, SandboxResult

if TYPE_CHECKING:
    from runbox.runtime.sandbox.workspace import Workspace

logger = logging.getLogger(__name__)

_READ_CHUNK = 64 * 1024
CAPTURE_LIMIT_MARKER = "\n... [output truncated, capture limit of {limit} bytes reached]"


class DockerSandbox:
    """Ephemeral Docker container sandbox.

    Satisfies the :class:`~runbox.runtime.sandbox.executor.SandboxExecutor`
    protocol.

    Each ``execute()`` call:
    1. ``docker create`` with resource limits, read-only mounts, no network
       and no capabilities.
    2. ``docker start`` the container.
    3. ``docker wait`` (with a host-side timeout) for it to finish.
    4. ``docker logs`` to capture output.
    5. ``docker rm -f`` in a ``finally`` block, which also kills a container
       left running by a timeout or a cancelled caller.
    """

    def __init__(self, config: SandboxConfig | None = None) -> None:
        self._config = config or SandboxConfig()
        self._active_containers: set[str] = set()

    async def execute(self, workspace: Workspace, profile: LanguageProfile) -> SandboxResult:
        """Run the workspace program inside an ephemeral container."""
        docker = self._config.docker_binary
        container_name = f"runbox-{workspace.id}"
        host_timeout = profile.timeout + self._config.host_grace

        create_cmd = self._build_create_command(container_name, workspace, profile)

        try:
            # 1. docker create
            await self._run_docker(create_cmd)
            self._active_containers.add(container_name)

            # 2. docker start
            await self._run_docker([docker, "start", container_name])

            # 3. docker wait (with timeout)
            try:
                wait_result = await asyncio.wait_for(
                    self._run_docker([docker, "wait", container_name]),
                    timeout=host_timeout,
                )
                exit_code = int(wait_result.stdout.strip()) if wait_result.stdout.strip() else 1
            except TimeoutError:
                logger.warning(
                    "Container %s outlived the host-side wait of %ss; killing it",
                    container_name,
                    host_timeout,
                )
                await self._run_docker([docker, "kill", container_name], ignore_errors=True)
                partial = await self._collect_logs(container_name, ignore_errors=True)
                raise SandboxTimeoutError(
                    profile.timeout, stdout=partial.stdout, stderr=partial.stderr
                ) from None

            # 4. docker logs
            logs = await self._collect_logs(container_name)

            return SandboxResult(
                exit_code=exit_code,
                stdout=logs.stdout,
                stderr=logs.stderr,
            )
        finally:
            # 5. Always remove the container
            await self._remove_container(container_name)

    async def cleanup(self) -> None:
        """Remove all tracked containers."""
        containers = list(self._active_containers)
        for name in containers:
            await self._remove_container(name)

    def _build_create_command(
        self,
        container_name: str,
        workspace: Workspace,
        profile: LanguageProfile,
    ) -> list[str]:
        """Build the ``docker create`` command for *profile*."""
        cfg = self._config
        cmd: list[str] = [
            cfg.docker_binary, "create",
            "--name", container_name,
            "--init",
            "--memory", profile.memory_limit,
            "--cpus", str(cfg.cpu_limit),
            "--pids-limit", str(cfg.pids_limit),
            "--network", "none",
            "--read-only",
            "--tmpfs", profile.scratch_mount,
            "--user", cfg.user,
            "--cap-drop", "ALL",
            "--security-opt", "no-new-privileges",
        ]

        for host_path, container_path in profiles.mounts(workspace):
            cmd.extend(["--volume", f"{host_path}:{container_path}:ro"])

        # Image + command
        cmd.append(profile.image)
        cmd.extend(profiles.entrypoint(profile, workspace))

        return cmd

    async def _collect_logs(self, name: str, *, ignore_errors: bool = False) -> _DockerOutput:
        return await self._run_docker(
            [self._config.docker_binary, "logs", name],
            ignore_errors=ignore_errors,
            capture_stderr=True,
            strip=False,
            max_bytes=self._config.max_output_bytes,
        )

    async def _remove_container(self, name: str) -> None:
        """Force-remove a container, swallowing errors."""
        await self._run_docker([self._config.docker_binary, "rm", "-f", name], ignore_errors=True)
        self._active_containers.discard(name)

    @staticmethod
    async def _run_docker(
        cmd: list[str],
        *,
        ignore_errors: bool = False,
        capture_stderr: bool = False,
        strip: bool = True,
        max_bytes: int | None = None,
    ) -> _DockerOutput:
        """Run a docker CLI command and return its output.

        With *max_bytes* set, each stream is read incrementally and the
        command is killed as soon as either stream exceeds the cap.  The
        kept prefix is suffixed with :data:`CAPTURE_LIMIT_MARKER`.
        """
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            if max_bytes is None:
                stdout_bytes, stderr_bytes = await proc.communicate()
                stdout_cut = stderr_cut = False
            else:
                (stdout_bytes, stdout_cut), (stderr_bytes, stderr_cut) = await asyncio.gather(
                    _read_capped(proc, proc.stdout, max_bytes),
                    _read_capped(proc, proc.stderr, max_bytes),
                )
                await proc.wait()
        except OSError as exc:
            if ignore_errors:
                return _DockerOutput()
            raise SandboxError(f"Failed to run docker: {exc}") from exc

        stdout = stdout_bytes.decode(errors="replace") if stdout_bytes else ""
        stderr = stderr_bytes.decode(errors="replace") if stderr_bytes else ""
        if strip:
            stdout, stderr = stdout.strip(), stderr.strip()
        if stdout_cut:
            stdout += CAPTURE_LIMIT_MARKER.format(limit=max_bytes)
        if stderr_cut:
            stderr += CAPTURE_LIMIT_MARKER.format(limit=max_bytes)

        # A capped read kills the command, so its exit status is meaningless.
        killed = stdout_cut or stderr_cut
        if proc.returncode != 0 and not ignore_errors and not killed:
            raise SandboxError(f"docker command failed (rc={proc.returncode}): {stderr or stdout}")

        return _DockerOutput(
            stdout=stdout,
            stderr=stderr if capture_stderr else "",
        )


async def _read_capped(
    proc: asyncio.subprocess.Process,
    stream: asyncio.StreamReader | None,
    max_bytes: int,
) -> tuple[bytes, bool]:
    """Read *stream* up to *max_bytes*; kill *proc* once the cap is exceeded."""
    if stream is None:
        return b"", False
    buf = bytearray()
    while True:
        chunk = await stream.read(_READ_CHUNK)
        if not chunk:
            return bytes(buf), False
        buf.extend(chunk)
        if len(buf) > max_bytes:
            try:
                proc.kill()
            except ProcessLookupError:
                pass
            return bytes(buf[:max_bytes]), True


class _DockerOutput:
    """Simple container for docker CLI output."""

    __slots__ = ("stdout", "stderr")

    def __init__(self, stdout: str = "", stderr: str = "") -> None:
        self.stdout = stdout
        self.stderr = stderr
