"""ExecutionService: validate, materialize, launch, classify, clean up.

One call to :meth:`ExecutionService.execute` services one request:

1. **Validate**: reject blank code before any resource is allocated.
2. **Materialize**: write the source (and Java stdin) to scratch files.
3. **Launch**: run the program in a fresh :class:`SandboxExecutor`.
4. **Collect**: classify the raw result into an :class:`ExecutionResult`.
5. **Clean up**: remove the scratch files and the sandbox, on every path.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from runbox.config import RunboxSettings
from runbox.runtime.errors import RequestValidationError, SandboxTimeoutError
from runbox.runtime.sandbox.docker_sandbox import DockerSandbox
from runbox.runtime.sandbox.models import ExecutionRequest, ExecutionResult
from runbox.runtime.sandbox.profiles import (
    SIGNAL_EXIT_CODES,
    TIMEOUT_EXIT_CODE,
    resolve_language,
    timeout_message,
)
from runbox.runtime.sandbox.workspace import WorkspaceMaterializer
from runbox.utils.telemetry import (
    ATTR_DURATION_MS,
    ATTR_EXIT_CODE,
    ATTR_LANGUAGE,
    ATTR_SUCCESS,
    ATTR_TIMED_OUT,
    ATTR_WORKSPACE_ID,
    SPAN_EXECUTE,
    get_tracer,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from opentelemetry.trace import Span

    from runbox.runtime.sandbox.executor import SandboxExecutor
    from runbox.runtime.sandbox.models import LanguageProfile, SandboxResult
    from runbox.runtime.sandbox.workspace import Workspace

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

NO_CODE_MESSAGE = "No code provided"
GENERIC_FAILURE_MESSAGE = "Execution failed"


def truncate_output(text: str, max_chars: int) -> str:
    """Cut *text* to *max_chars*, appending a marker with the omitted count."""
    if len(text) <= max_chars:
        return text
    omitted = len(text) - max_chars
    return text[:max_chars] + f"\n... [output truncated, {omitted} chars omitted]"


class ExecutionService:
    """Runs untrusted snippets end-to-end.

    A new sandbox is built by *sandbox_factory* for every execution, so
    concurrent requests never share sandbox state.
    """

    def __init__(
        self,
        settings: RunboxSettings | None = None,
        *,
        sandbox_factory: Callable[[], SandboxExecutor] | None = None,
    ) -> None:
        self._settings = settings or RunboxSettings()
        self._profiles = self._settings.language_profiles()
        self._materializer = WorkspaceMaterializer(self._settings.scratch_dir)
        self._sandbox_factory = sandbox_factory or self._docker_sandbox

    @property
    def settings(self) -> RunboxSettings:
        return self._settings

    @property
    def profiles(self) -> dict[str, LanguageProfile]:
        return dict(self._profiles)

    def validate(self, request: ExecutionRequest) -> LanguageProfile:
        """Check *request* and return the profile it will run under.

        Raises:
            RequestValidationError: If the code is missing or blank, or the
                language is unknown in strict mode.
        """
        if request.code is None or not request.code.strip():
            raise RequestValidationError(NO_CODE_MESSAGE)
        language = resolve_language(request.language, strict=self._settings.strict_languages)
        return self._profiles[language]

    async def execute(self, request: ExecutionRequest) -> ExecutionResult:
        """Run *request* and return its classified result.

        Program failures and timeouts are returned as unsuccessful results.

        Raises:
            RequestValidationError: See :meth:`validate`.
            WorkspaceError: If the scratch files cannot be written.
            SandboxError: If the isolation layer itself fails.
        """
        profile = self.validate(request)
        workspace = self._materializer.materialize(
            request.code or "", profile.language, request.input or ""
        )

        try:
            with _tracer.start_as_current_span(SPAN_EXECUTE) as span:
                span.set_attribute(ATTR_LANGUAGE, profile.language)
                span.set_attribute(ATTR_WORKSPACE_ID, workspace.id)
                sandbox = self._sandbox_factory()
                try:
                    result = await self._launch(sandbox, workspace, profile, span)
                finally:
                    await _cleanup_sandbox(sandbox, workspace.id)
                span.set_attribute(ATTR_SUCCESS, result.success)
                return result
        finally:
            workspace.cleanup()

    async def _launch(
        self,
        sandbox: SandboxExecutor,
        workspace: Workspace,
        profile: LanguageProfile,
        span: Span,
    ) -> ExecutionResult:
        started = time.monotonic()
        try:
            raw = await sandbox.execute(workspace, profile)
        except SandboxTimeoutError as exc:
            elapsed = _elapsed_ms(started)
            logger.warning(
                "Workspace %s (%s) hit the host-side timeout after %dms",
                workspace.id,
                profile.language,
                elapsed,
            )
            span.set_attribute(ATTR_TIMED_OUT, True)
            span.set_attribute(ATTR_DURATION_MS, elapsed)
            return ExecutionResult(
                success=False,
                output=self._truncate(exc.stdout),
                error=timeout_message(profile),
                execution_time=elapsed,
            )

        elapsed = _elapsed_ms(started)
        logger.info(
            "Workspace %s (%s) exited with %d in %dms",
            workspace.id,
            profile.language,
            raw.exit_code,
            elapsed,
        )
        span.set_attribute(ATTR_EXIT_CODE, raw.exit_code)
        span.set_attribute(ATTR_TIMED_OUT, _timed_out(raw.exit_code, profile, elapsed))
        span.set_attribute(ATTR_DURATION_MS, elapsed)
        return self._classify(raw, profile, elapsed)

    def _classify(
        self, raw: SandboxResult, profile: LanguageProfile, elapsed_ms: int
    ) -> ExecutionResult:
        stdout = self._truncate(raw.stdout)
        stderr = self._truncate(raw.stderr)

        if raw.exit_code == 0:
            return ExecutionResult(
                success=True,
                output=stdout,
                error=stderr or None,
                execution_time=elapsed_ms,
            )

        if _timed_out(raw.exit_code, profile, elapsed_ms):
            error = timeout_message(profile)
        elif stderr:
            error = stderr
        else:
            error = GENERIC_FAILURE_MESSAGE

        return ExecutionResult(
            success=False,
            output=stdout,
            error=error,
            execution_time=elapsed_ms,
        )

    def _truncate(self, text: str) -> str:
        return truncate_output(text, self._settings.max_output_chars)

    def _docker_sandbox(self) -> SandboxExecutor:
        return DockerSandbox(self._settings.sandbox_config())


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def _timed_out(exit_code: int, profile: LanguageProfile, elapsed_ms: int) -> bool:
    """Whether *exit_code* means the in-container limit fired.

    A signal exit only counts once the profile's limit has actually elapsed,
    so a program killed early (e.g. by the OOM killer) is not misreported.
    """
    if exit_code == TIMEOUT_EXIT_CODE:
        return True
    return exit_code in SIGNAL_EXIT_CODES and elapsed_ms >= profile.timeout * 1000


async def _cleanup_sandbox(sandbox: SandboxExecutor, workspace_id: str) -> None:
    """Release *sandbox*; failures are logged, never raised."""
    try:
        await sandbox.cleanup()
    except Exception as exc:
        logger.warning("Sandbox cleanup for workspace %s failed: %s", workspace_id, exc)
