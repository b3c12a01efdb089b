"""HTTP API for the execution service.

``POST {prefix}/execute`` takes ``{code, language?, input?}`` and answers
with ``{success, output?, error?, executionTime?}``:

- 200 for every program outcome, including failures and timeouts.
- 400 when the request is rejected before execution.
- 500 when the sandbox or the harness itself fails.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError as BodyValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from runbox import __version__
from runbox.config import RunboxSettings
from runbox.runtime.errors import RequestValidationError, SandboxError
from runbox.runtime.sandbox.models import ExecutionRequest
from runbox.runtime.service import ExecutionService

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def create_app(
    settings: RunboxSettings | None = None,
    *,
    service: ExecutionService | None = None,
) -> FastAPI:
    """Build the FastAPI application around an :class:`ExecutionService`."""
    settings = settings or (service.settings if service is not None else RunboxSettings())
    service = service or ExecutionService(settings)

    app = FastAPI(title="runbox", version=__version__)
    app.state.service = service

    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.exception_handler(BodyValidationError)
    async def _invalid_body(request: Request, exc: BodyValidationError) -> JSONResponse:
        return _error(400, "Invalid request body")

    router = APIRouter()

    @router.post("/execute")
    async def execute(body: ExecutionRequest) -> JSONResponse:
        try:
            result = await service.execute(body)
        except RequestValidationError as exc:
            return _error(400, exc.message)
        except SandboxError as exc:
            logger.error("Sandbox failure: %s", exc)
            return _error(500, INTERNAL_ERROR_MESSAGE)
        except Exception:
            logger.exception("Code execution error")
            return _error(500, INTERNAL_ERROR_MESSAGE)
        return JSONResponse(content=result.to_response())

    @router.get("/languages")
    async def languages() -> list[dict[str, Any]]:
        return [
            {
                "language": p.language,
                "image": p.image,
                "memory": p.memory_limit,
                "timeout": p.timeout,
            }
            for p in service.profiles.values()
        ]

    app.include_router(router, prefix=settings.api.prefix)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app
