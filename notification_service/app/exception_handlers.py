"""Exception handlers rendering AppException as RFC 7807 problem details."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from notification_service.core.exceptions import AppException

logger = logging.getLogger(__name__)

PROBLEM_JSON = "application/problem+json"


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    logger.warning(
        "Application exception occurred",
        extra={
            "path": request.url.path,
            "method": request.method,
            "exception_type": exc.type,
            "status_code": exc.status_code,
            "detail": exc.detail,
        },
    )
    problem = exc.to_problem()
    problem.setdefault("instance", request.url.path)
    return JSONResponse(status_code=exc.status_code, content=problem, media_type=PROBLEM_JSON)


def configure_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
