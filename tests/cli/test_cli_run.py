"""Tests for ``runbox run`` CLI command."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
from click.testing import CliRunner

from runbox.cli import main
from runbox.runtime.errors import RequestValidationError, SandboxError
from runbox.runtime.sandbox.models import ExecutionRequest, ExecutionResult
from runbox.runtime.service import ExecutionService

if TYPE_CHECKING:
    from pathlib import Path


def _patch_execute(**kwargs):
    return patch.object(ExecutionService, "execute", new_callable=AsyncMock, **kwargs)


class TestRunLocal:
    def test_success(self, tmp_path: Path) -> None:
        f = tmp_path / "hello.js"
        f.write_text("console.log('hi')")
        result = ExecutionResult(success=True, output="hi\n", execution_time=42)

        with _patch_execute(return_value=result) as mock_exec:
            out = CliRunner().invoke(main, ["run", str(f)])

        assert out.exit_code == 0
        assert "hi" in out.output
        assert "success" in out.output
        assert "42ms" in out.output
        request: ExecutionRequest = mock_exec.call_args.args[0]
        assert request.code == "console.log('hi')"
        assert request.language == "javascript"

    def test_language_guessed_from_extension(self, tmp_path: Path) -> None:
        f = tmp_path / "Adder.java"
        f.write_text("public class Adder {}")

        with _patch_execute(return_value=ExecutionResult(success=True, output="7\n")) as mock_exec:
            CliRunner().invoke(main, ["run", str(f), "--input", "3\n4\n"])

        request: ExecutionRequest = mock_exec.call_args.args[0]
        assert request.language == "java"
        assert request.input == "3\n4\n"

    def test_input_file(self, tmp_path: Path) -> None:
        src = tmp_path / "Main.java"
        src.write_text("class Main {}")
        stdin = tmp_path / "in.txt"
        stdin.write_text("5\n")

        with _patch_execute(return_value=ExecutionResult(success=True, output="")) as mock_exec:
            CliRunner().invoke(main, ["run", str(src), "--input-file", str(stdin)])

        assert mock_exec.call_args.args[0].input == "5\n"

    def test_input_options_are_exclusive(self, tmp_path: Path) -> None:
        src = tmp_path / "a.js"
        src.write_text("1")
        stdin = tmp_path / "in.txt"
        stdin.write_text("x")

        out = CliRunner().invoke(main, ["run", str(src), "-i", "x", "--input-file", str(stdin)])

        assert out.exit_code != 0
        assert "mutually exclusive" in out.output

    def test_failure_exits_nonzero(self, tmp_path: Path) -> None:
        f = tmp_path / "loop.js"
        f.write_text("while(true){}")
        result = ExecutionResult(
            success=False, output="", error="Code execution timed out (10s limit)", execution_time=10010
        )

        with _patch_execute(return_value=result):
            out = CliRunner().invoke(main, ["run", str(f)])

        assert out.exit_code == 1
        assert "timed out" in out.output
        assert "failed" in out.output

    def test_json_output(self, tmp_path: Path) -> None:
        f = tmp_path / "a.js"
        f.write_text("1")

        with _patch_execute(return_value=ExecutionResult(success=True, output="1\n", execution_time=3)):
            out = CliRunner().invoke(main, ["run", str(f), "--json"])

        assert json.loads(out.output) == {"success": True, "output": "1\n", "executionTime": 3}

    def test_validation_error(self, tmp_path: Path) -> None:
        f = tmp_path / "blank.js"
        f.write_text("   ")

        with _patch_execute(side_effect=RequestValidationError("No code provided")):
            out = CliRunner().invoke(main, ["run", str(f)])

        assert out.exit_code == 2
        assert "No code provided" in out.output

    def test_sandbox_error(self, tmp_path: Path) -> None:
        f = tmp_path / "a.js"
        f.write_text("1")

        with _patch_execute(side_effect=SandboxError("docker not found")):
            out = CliRunner().invoke(main, ["run", str(f)])

        assert out.exit_code == 3
        assert "docker not found" in out.output

    def test_missing_file(self) -> None:
        out = CliRunner().invoke(main, ["run", "/nonexistent/code.js"])
        assert out.exit_code != 0

    def test_bad_config(self, tmp_path: Path) -> None:
        cfg = tmp_path / "runbox.yaml"
        cfg.write_text("cpu_limit: nope\n")
        f = tmp_path / "a.js"
        f.write_text("1")

        out = CliRunner().invoke(main, ["--config", str(cfg), "run", str(f)])

        assert out.exit_code == 1
        assert "Configuration error" in out.output


class TestRunRemote:
    def _response(self, status: int, body: dict) -> MagicMock:
        resp = MagicMock(spec=httpx.Response)
        resp.status_code = status
        resp.json.return_value = body
        resp.text = json.dumps(body)
        return resp

    def test_posts_to_server(self, tmp_path: Path) -> None:
        f = tmp_path / "a.js"
        f.write_text("console.log(1)")
        body = {"success": True, "output": "1\n", "executionTime": 8}

        with patch("httpx.post", return_value=self._response(200, body)) as mock_post:
            out = CliRunner().invoke(main, ["run", str(f), "--remote", "http://sandbox:8000/"])

        assert out.exit_code == 0
        assert mock_post.call_args.args[0] == "http://sandbox:8000/api/execute"
        assert mock_post.call_args.kwargs["json"] == {
            "code": "console.log(1)",
            "language": "javascript",
        }
        assert "8ms" in out.output

    def test_server_400(self, tmp_path: Path) -> None:
        f = tmp_path / "a.js"
        f.write_text("1")
        body = {"success": False, "error": "No code provided"}

        with patch("httpx.post", return_value=self._response(400, body)):
            out = CliRunner().invoke(main, ["run", str(f), "--remote", "http://sandbox:8000"])

        assert out.exit_code == 2
        assert "No code provided" in out.output

    def test_server_500(self, tmp_path: Path) -> None:
        f = tmp_path / "a.js"
        f.write_text("1")
        body = {"success": False, "error": "Internal server error"}

        with patch("httpx.post", return_value=self._response(500, body)):
            out = CliRunner().invoke(main, ["run", str(f), "--remote", "http://sandbox:8000"])

        assert out.exit_code == 3
        assert "Internal server error" in out.output

    def test_unreachable(self, tmp_path: Path) -> None:
        f = tmp_path / "a.js"
        f.write_text("1")

        with patch("httpx.post", side_effect=httpx.ConnectError("refused")):
            out = CliRunner().invoke(main, ["run", str(f), "--remote", "http://sandbox:8000"])

        assert out.exit_code == 3
        assert "Cannot reach" in out.output
