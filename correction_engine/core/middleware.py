"""
中间件模块 - 全局错误处理
统一的错误响应格式: {"error": {"code", "message", "details"}}
"""
import os

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

from correction_engine.core.errors import BaseApplicationError
from correction_engine.core.logging import LogEvent, get_logger

logger = get_logger(__name__)


def _is_development() -> bool:
    return os.getenv("ENVIRONMENT", "development") == "development"


async def application_error_handler(request: Request, exc: BaseApplicationError) -> JSONResponse:
    """Render an application error with its own status code."""
    if exc.status_code >= 500:
        logger.error(
            LogEvent.REQUEST_FAILED,
            path=request.url.path,
            error_code=exc.error_code.value,
            error=exc.message,
        )
    else:
        logger.info(
            LogEvent.REQUEST_REJECTED,
            path=request.url.path,
            error_code=exc.error_code.value,
            error=exc.message,
        )
    headers = {"Retry-After": "30"} if exc.details.get("retryable") else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.to_dict()},
        headers=headers,
    )


async def error_handler(request: Request, exc: Exception) -> JSONResponse:
    """全局错误处理"""
    if isinstance(exc, BaseApplicationError):
        return await application_error_handler(request, exc)
    if isinstance(exc, HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": {"code": "HTTP_ERROR", "message": exc.detail, "details": {}}}
        )

    logger.error(LogEvent.UNHANDLED_EXCEPTION, path=request.url.path, error=str(exc), exc_info=True)
    error_detail = str(exc) if _is_development() else "Internal server error"
    return JSONResponse(
        status_code=500,
        content={"error": {"code": "INTERNAL_ERROR", "message": error_detail, "details": {}}}
    )
