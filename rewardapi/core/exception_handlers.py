import logging
import traceback
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .exceptions import (
    BaseAPIException,
    CooldownActiveError,
    EconomyError,
    InternalServerError,
    TryAgainError,
)

logger = logging.getLogger("rewardapi")

# TRY_AGAIN 응답에 권장하는 재시도 간격(초)
TRY_AGAIN_RETRY_AFTER = 1


def _request_context(request: Request) -> Dict[str, Any]:
    return {
        "request_id": getattr(request.state, "request_id", "-"),
        "method": request.method,
        "path": request.url.path,
        "client": request.client.host if request.client else "-",
    }


def _prefix(ctx: Dict[str, Any]) -> str:
    return f"{ctx['request_id']} {ctx['method']} {ctx['path']} from {ctx['client']}"


def _retry_after(exc: BaseAPIException) -> Optional[Dict[str, str]]:
    if isinstance(exc, CooldownActiveError):
        return {"Retry-After": str(max(exc.remaining_seconds, 1))}
    if isinstance(exc, TryAgainError):
        return {"Retry-After": str(TRY_AGAIN_RETRY_AFTER)}
    return None


async def handle_base_api_exception(request, exc):
    ctx = _request_context(request)
    extra = {"request_id": ctx["request_id"], "error_code": exc.error_code}
    if isinstance(exc, EconomyError) and exc.status_code < 500:
        # 잔액 부족, 쿨다운 등 정상적인 거절
        logger.info(f"[Rejected] {_prefix(ctx)} -> {exc.error_code}: {exc.message} {exc.details}", extra=extra)
    elif exc.status_code >= 500:
        logger.error(f"[{exc.error_code}] {_prefix(ctx)} -> {exc.status_code}: {exc.message} {exc.details}", extra=extra)
    else:
        logger.warning(f"[{exc.error_code}] {_prefix(ctx)} -> {exc.status_code}: {exc.message}", extra=extra)
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.detail,  # type: ignore[arg-type]
        headers=_retry_after(exc),
    )


async def handle_http_exception(request, exc):
    ctx = _request_context(request)
    message = f"[HTTPException] {_prefix(ctx)} -> {exc.status_code}: {exc.detail}"
    if exc.status_code >= 500:
        logger.error(message)
    else:
        logger.warning(message)

    if isinstance(exc.detail, dict) and "error" in exc.detail:
        content = exc.detail
    else:
        content = {
            "success": False,
            "error": {"code": "HTTP_ERROR", "message": str(exc.detail), "details": {}},
        }
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


async def handle_validation_error(request, exc):
    ctx = _request_context(request)
    logger.warning(f"[ValidationError] {_prefix(ctx)} -> 422: {exc.errors()}")
    content = {
        "success": False,
        "error": {
            "code": "VALIDATION_001",
            "message": "Validation failed",
            "details": {"errors": exc.errors()},
        },
    }
    return JSONResponse(status_code=422, content=content)


async def handle_unexpected_error(request, exc):
    ctx = _request_context(request)
    tb_str = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    logger.error(f"[Unhandled {type(exc).__name__}] {_prefix(ctx)}: {exc}\n{tb_str}")

    internal = InternalServerError()
    return JSONResponse(status_code=internal.status_code, content=internal.detail)  # type: ignore[arg-type]


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BaseAPIException, handle_base_api_exception)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
