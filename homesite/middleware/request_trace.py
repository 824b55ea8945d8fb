"""
请求追踪中间件

- 沿用调用方的 X-Request-ID，没有时生成一个
- 响应头返回 X-Request-ID 与 X-Response-Time
- 按状态码分级记录访问日志
- 路由中未处理的异常在这里记录堆栈并转换为 500 {"error": "Internal server error"}，
  不向调用方泄露异常内容
"""

import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from homesite.infra.logging import RequestTimer, get_logger, set_request_id, set_username

logger = get_logger(__name__)

# 成功时不记录日志的路径
QUIET_PATHS = ("/healthz", "/favicon.ico")


class RequestTraceMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        set_request_id(request_id)
        set_username(None)
        timer = RequestTimer()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(f"未处理的异常: {request.method} {request.url.path}")
            response = JSONResponse(status_code=500, content={"error": "Internal server error"})

        elapsed = timer.elapsed_ms
        status = response.status_code
        message = f"{request.method} {request.url.path} - {status} - {elapsed:.0f}ms"
        extra = {"method": request.method, "path": request.url.path, "status_code": status, "duration_ms": elapsed}

        if status >= 500:
            logger.error(message, extra=extra)
        elif status >= 400:
            logger.warning(message, extra=extra)
        elif request.url.path not in QUIET_PATHS:
            logger.info(message, extra=extra)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{elapsed:.0f}ms"
        return response
