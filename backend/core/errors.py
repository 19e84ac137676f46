"""
标准错误码体系
提供统一的错误码定义和异常处理
"""

from typing import Optional, Any, Dict
from enum import IntEnum
from fastapi import status
from fastapi.responses import JSONResponse


class ErrorCode(IntEnum):
    """
    标准错误码

    错误码规范：
    - 0: 成功
    - 1xxx: 系统级错误
    - 2xxx: 认证/授权错误
    - 3xxx: 业务通用错误
    - 4xxx: 模块级错误
    """

    # ==================== 成功 ====================
    SUCCESS = 0

    # ==================== 系统级错误 (1xxx) ====================
    INTERNAL_ERROR = 1000           # 服务器内部错误
    CONFIG_ERROR = 1003             # 配置错误
    FILE_SYSTEM_ERROR = 1007        # 文件系统错误

    # ==================== 认证/授权错误 (2xxx) ====================
    UNAUTHORIZED = 2001             # 未认证（未登录）
    TOKEN_INVALID = 2003            # 令牌无效
    PERMISSION_DENIED = 2004        # 权限不足
    LOGIN_FAILED = 2007             # 登录失败
    ACCOUNT_NOT_FOUND = 2009        # 账户不存在
    ACCOUNT_EXISTS = 2010           # 账户已存在

    # ==================== 业务通用错误 (3xxx) ====================
    VALIDATION_ERROR = 3001         # 参数验证失败
    RESOURCE_NOT_FOUND = 3002       # 资源不存在
    RESOURCE_EXISTS = 3003          # 资源已存在
    RESOURCE_CONFLICT = 3004        # 资源冲突
    OPERATION_FAILED = 3005         # 操作失败

    # ==================== 模块级错误 (4xxx) ====================
    # 4000-4099: 博客模块
    BLOG_POST_NOT_FOUND = 4001
    BLOG_CATEGORY_NOT_FOUND = 4002
    BLOG_TAG_NOT_FOUND = 4003
    BLOG_POST_CONTENT_MISSING = 4004


# 错误码对应的默认消息
ERROR_MESSAGES: Dict[int, str] = {
    ErrorCode.SUCCESS: "操作成功",

    # 系统级
    ErrorCode.INTERNAL_ERROR: "服务器内部错误，请稍后重试",
    ErrorCode.CONFIG_ERROR: "系统配置错误",
    ErrorCode.FILE_SYSTEM_ERROR: "文件系统错误",

    # 认证/授权
    ErrorCode.UNAUTHORIZED: "请先登录",
    ErrorCode.TOKEN_INVALID: "无效的认证凭据",
    ErrorCode.PERMISSION_DENIED: "没有权限执行此操作",
    ErrorCode.LOGIN_FAILED: "用户名或密码错误",
    ErrorCode.ACCOUNT_NOT_FOUND: "账户不存在",
    ErrorCode.ACCOUNT_EXISTS: "账户已存在",

    # 业务通用
    ErrorCode.VALIDATION_ERROR: "参数验证失败",
    ErrorCode.RESOURCE_NOT_FOUND: "请求的资源不存在",
    ErrorCode.RESOURCE_EXISTS: "资源已存在",
    ErrorCode.RESOURCE_CONFLICT: "资源冲突",
    ErrorCode.OPERATION_FAILED: "操作失败",

    # 模块级
    ErrorCode.BLOG_POST_NOT_FOUND: "文章不存在",
    ErrorCode.BLOG_CATEGORY_NOT_FOUND: "分类不存在",
    ErrorCode.BLOG_TAG_NOT_FOUND: "标签不存在",
    ErrorCode.BLOG_POST_CONTENT_MISSING: "文章正文文件缺失",
}

# 错误码对应的 HTTP 状态码
ERROR_HTTP_STATUS: Dict[int, int] = {
    ErrorCode.SUCCESS: status.HTTP_200_OK,

    # 系统级 -> 500
    ErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.CONFIG_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.FILE_SYSTEM_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,

    # 认证/授权 -> 401/403
    ErrorCode.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.TOKEN_INVALID: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.PERMISSION_DENIED: status.HTTP_403_FORBIDDEN,
    ErrorCode.LOGIN_FAILED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.ACCOUNT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.ACCOUNT_EXISTS: status.HTTP_409_CONFLICT,

    # 业务通用 -> 400/404/409
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.RESOURCE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.RESOURCE_EXISTS: status.HTTP_409_CONFLICT,
    ErrorCode.RESOURCE_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.OPERATION_FAILED: status.HTTP_400_BAD_REQUEST,

    # 模块级
    ErrorCode.BLOG_POST_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.BLOG_CATEGORY_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.BLOG_TAG_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.BLOG_POST_CONTENT_MISSING: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class AppException(Exception):
    """
    应用异常基类

    用于抛出业务异常，包含错误码和详细信息

    Usage:
        raise AppException(ErrorCode.RESOURCE_NOT_FOUND, "标签不存在")
        raise AppException(ErrorCode.VALIDATION_ERROR, data={"field": "email", "error": "格式不正确"})
    """

    def __init__(
        self,
        code: int = ErrorCode.INTERNAL_ERROR,
        message: Optional[str] = None,
        data: Any = None
    ):
        self.code = code
        self.message = message or ERROR_MESSAGES.get(code, "未知错误")
        self.data = data
        self.http_status = ERROR_HTTP_STATUS.get(code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        super().__init__(self.message)

    def to_response(self) -> JSONResponse:
        """转换为 JSONResponse"""
        return JSONResponse(
            status_code=self.http_status,
            content={
                "code": self.code,
                "message": self.message,
                "data": self.data
            }
        )

    def to_dict(self) -> dict:
        """转换为字典"""
        return {
            "code": self.code,
            "message": self.message,
            "data": self.data
        }


class ValidationException(AppException):
    """参数验证异常"""

    def __init__(self, message: str = "参数验证失败", errors: Optional[list] = None):
        super().__init__(
            code=ErrorCode.VALIDATION_ERROR,
            message=message,
            data={"errors": errors} if errors else None
        )


class AuthException(AppException):
    """认证异常"""

    def __init__(
        self,
        code: int = ErrorCode.UNAUTHORIZED,
        message: Optional[str] = None
    ):
        super().__init__(code=code, message=message)


class NotFoundException(AppException):
    """资源不存在异常"""

    def __init__(
        self,
        resource: str = "资源",
        resource_id: Any = None,
        code: int = ErrorCode.RESOURCE_NOT_FOUND
    ):
        message = f"{resource}不存在"
        if resource_id:
            message = f"{resource} ({resource_id}) 不存在"
        super().__init__(code=code, message=message)


class ConflictException(AppException):
    """资源冲突异常（slug / 用户名 / 重命名目标已存在）"""

    def __init__(
        self,
        message: str = "资源已存在",
        code: int = ErrorCode.RESOURCE_EXISTS
    ):
        super().__init__(code=code, message=message)


class StorageException(AppException):
    """
    文件系统异常
    磁盘已满、权限不足、文件中途消失等情况统一归为此类
    """

    def __init__(self, message: str = "文件系统错误"):
        super().__init__(code=ErrorCode.FILE_SYSTEM_ERROR, message=message)


# ==================== 异常处理器 ====================

async def app_exception_handler(request, exc: AppException):
    """AppException 异常处理器"""
    return exc.to_response()


def register_exception_handlers(app):
    """
    注册异常处理器

    在 main.py 中调用：
        from core.errors import register_exception_handlers
        register_exception_handlers(app)
    """
    from fastapi.exceptions import RequestValidationError
    from starlette.exceptions import HTTPException as StarletteHTTPException

    @app.exception_handler(AppException)
    async def handle_app_exception(request, exc: AppException):
        return exc.to_response()

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request, exc: RequestValidationError):
        errors = []
        for error in exc.errors():
            errors.append({
                "field": ".".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"]
            })

        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "code": ErrorCode.VALIDATION_ERROR,
                "message": "参数验证失败",
                "data": {"errors": errors}
            }
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request, exc: StarletteHTTPException):
        # 映射 HTTP 状态码到业务错误码
        code_mapping = {
            401: ErrorCode.UNAUTHORIZED,
            403: ErrorCode.PERMISSION_DENIED,
            404: ErrorCode.RESOURCE_NOT_FOUND,
            409: ErrorCode.RESOURCE_CONFLICT,
            500: ErrorCode.INTERNAL_ERROR,
        }

        code = code_mapping.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
        message = str(exc.detail) if exc.detail else ERROR_MESSAGES.get(code, "请求失败")

        return JSONResponse(
            status_code=exc.status_code,
            content={
                "code": code,
                "message": message,
                "data": None
            },
            headers=getattr(exc, "headers", None)
        )
