"""Tests for the HTTP API."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from runbox.api.app import create_app
from runbox.config import ApiSettings, RunboxSettings
from runbox.runtime.errors import SandboxError, WorkspaceError
from runbox.runtime.sandbox.models import SandboxResult
from runbox.runtime.service import ExecutionService
from tests.conftest import make_service


def _client(settings: RunboxSettings, outcome: SandboxResult | Exception) -> TestClient:
    service, _ = make_service(settings, outcome)
    return TestClient(create_app(service=service))


class TestExecuteEndpoint:
    def test_success(self, settings: RunboxSettings) -> None:
        client = _client(settings, SandboxResult(exit_code=0, stdout="hi\n"))

        resp = client.post("/api/execute", json={"code": "console.log('hi')"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["output"] == "hi\n"
        assert "error" not in body
        assert body["executionTime"] >= 0

    @pytest.mark.parametrize("payload", [{}, {"code": ""}, {"code": "   \n"}, {"code": None}])
    def test_blank_code_is_400(self, settings: RunboxSettings, payload: dict) -> None:
        client = _client(settings, SandboxResult(exit_code=0))

        resp = client.post("/api/execute", json=payload)

        assert resp.status_code == 400
        assert resp.json() == {"success": False, "error": "No code provided"}

    def test_malformed_body_is_400(self, settings: RunboxSettings) -> None:
        client = _client(settings, SandboxResult(exit_code=0))

        resp = client.post("/api/execute", json={"code": ["not", "a", "string"]})

        assert resp.status_code == 400
        assert resp.json()["success"] is False

    def test_program_failure_is_200(self, settings: RunboxSettings) -> None:
        client = _client(settings, SandboxResult(exit_code=1, stderr="SyntaxError\n"))

        resp = client.post("/api/execute", json={"code": "let ="})

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is False
        assert body["output"] == ""
        assert body["error"] == "SyntaxError\n"
        assert "executionTime" in body

    def test_timeout_is_200(self, settings: RunboxSettings) -> None:
        client = _client(settings, SandboxResult(exit_code=124))

        resp = client.post("/api/execute", json={"code": "for(;;){}"})

        assert resp.status_code == 200
        assert resp.json()["error"] == "Code execution timed out (10s limit)"

    def test_java_with_input(self, settings: RunboxSettings) -> None:
        service, created = make_service(settings, SandboxResult(exit_code=0, stdout="7\n"))
        client = TestClient(create_app(service=service))

        resp = client.post(
            "/api/execute",
            json={"code": "public class Adder {}", "language": "java", "input": "3\n4\n"},
        )

        assert resp.json()["output"] == "7\n"
        assert created[0].seen_stdin == ["3\n4\n"]

    def test_sandbox_failure_is_500(self, settings: RunboxSettings) -> None:
        client = _client(settings, SandboxError("docker: command not found"))

        resp = client.post("/api/execute", json={"code": "1"})

        assert resp.status_code == 500
        assert resp.json() == {"success": False, "error": "Internal server error"}

    def test_unexpected_failure_is_500(self, settings: RunboxSettings) -> None:
        service = ExecutionService(settings)
        client = TestClient(create_app(service=service))

        with patch.object(
            ExecutionService, "execute", new_callable=AsyncMock, side_effect=RuntimeError("boom")
        ):
            resp = client.post("/api/execute", json={"code": "1"})

        assert resp.status_code == 500
        assert resp.json()["error"] == "Internal server error"

    def test_workspace_failure_is_500(self, settings: RunboxSettings) -> None:
        service = ExecutionService(settings)
        client = TestClient(create_app(service=service))

        with patch.object(
            ExecutionService,
            "execute",
            new_callable=AsyncMock,
            side_effect=WorkspaceError("disk full"),
        ):
            resp = client.post("/api/execute", json={"code": "1"})

        assert resp.status_code == 500

    def test_strict_mode_rejects_unknown_language(self, settings: RunboxSettings) -> None:
        strict = settings.model_copy(update={"strict_languages": True})
        client = _client(strict, SandboxResult(exit_code=0))

        resp = client.post("/api/execute", json={"code": "puts 1", "language": "ruby"})

        assert resp.status_code == 400
        assert "Unsupported language" in resp.json()["error"]


class TestOtherRoutes:
    def test_health(self, settings: RunboxSettings) -> None:
        client = _client(settings, SandboxResult(exit_code=0))
        assert client.get("/health").json() == {"status": "ok"}

    def test_languages(self, settings: RunboxSettings) -> None:
        client = _client(settings, SandboxResult(exit_code=0))

        resp = client.get("/api/languages")

        by_name = {entry["language"]: entry for entry in resp.json()}
        assert by_name["javascript"]["timeout"] == 10
        assert by_name["java"]["memory"] == "256m"

    def test_custom_prefix(self, settings: RunboxSettings) -> None:
        custom = settings.model_copy(update={"api": ApiSettings(prefix="/v1")})
        client = _client(custom, SandboxResult(exit_code=0, stdout="x"))

        assert client.post("/v1/execute", json={"code": "1"}).status_code == 200
        assert client.post("/api/execute", json={"code": "1"}).status_code == 404

    def test_cors_enabled_when_configured(self, settings: RunboxSettings) -> None:
        custom = settings.model_copy(
            update={"api": ApiSettings(cors_origins=["http://localhost:5173"])}
        )
        client = _client(custom, SandboxResult(exit_code=0))

        resp = client.options(
            "/api/execute",
            headers={
                "Origin": "http://localhost:5173",
                "Access-Control-Request-Method": "POST",
            },
        )

        assert resp.headers["access-control-allow-origin"] == "http://localhost:5173"
