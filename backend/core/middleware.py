"""
中间件模块
请求日志与安全响应头
"""

import time
import uuid
import logging
from typing import Callable, Iterable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from .security import decode_token

logger = logging.getLogger(__name__)

WRITE_METHODS = {"POST", "PUT", "PATCH", "DELETE"}

DEFAULT_SKIP_PATHS = (
    "/content/",
    "/health",
    "/api/docs",
    "/api/redoc",
    "/api/openapi.json",
    "/favicon.ico"
)


def get_client_ip(request: Request) -> str:
    """获取客户端IP"""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return request.client.host if request.client else "unknown"


def get_request_username(request: Request) -> Optional[str]:
    """从 Bearer 令牌中解析用户名，无效令牌返回 None"""
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    token_data = decode_token(auth_header[7:])
    return token_data.username if token_data else None


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    请求日志中间件
    - 每个请求分配 X-Request-ID，并返回 X-Response-Time
    - 慢请求、错误请求记录 warning
    - 成功的写操作记录操作人（内容变更留痕）
    """

    def __init__(
        self,
        app: ASGIApp,
        skip_paths: Optional[Iterable[str]] = None,
        slow_request_threshold: float = 1.0
    ):
        super().__init__(app)
        self.skip_paths = list(skip_paths) if skip_paths else list(DEFAULT_SKIP_PATHS)
        self.slow_request_threshold = slow_request_threshold

    def _should_skip(self, path: str) -> bool:
        return any(path.startswith(p) for p in self.skip_paths)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if self._should_skip(request.url.path):
            return await call_next(request)

        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        start_time = time.time()
        method = request.method
        path = request.url.path

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = round((time.time() - start_time) * 1000, 2)
            logger.error(f"[请求异常] {method} {path} | {duration_ms}ms | {e}")
            raise

        duration = time.time() - start_time
        duration_ms = round(duration * 1000, 2)

        if duration > self.slow_request_threshold:
            logger.warning(f"[慢请求] {method} {path} | {response.status_code} | {duration_ms}ms")
        elif response.status_code >= 400:
            logger.warning(f"[请求错误] {method} {path} | {response.status_code} | {duration_ms}ms")
        elif method in WRITE_METHODS:
            username = get_request_username(request) or "-"
            logger.info(
                f"[内容变更] {method} {path} | 用户: {username} | IP: {get_client_ip(request)} | {duration_ms}ms"
            )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms}ms"
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    安全响应头中间件
    添加常见的安全响应头，API 路径禁用缓存
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        # 文件内容随时可能被改写，API 响应一律不缓存
        if request.url.path.startswith("/api/"):
            response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
            response.headers["Pragma"] = "no-cache"

        if "Server" in response.headers:
            del response.headers["Server"]

        return response
