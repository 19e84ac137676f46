"""
File Blog System 核心模块
提供框架的基础设施和通用功能

导出列表：
- 配置管理: get_settings, Settings
- 内容目录: ContentPaths, init_content, get_content
- 用户存储: UserService
- 安全认证: get_current_user, require_roles, require_admin, require_author
- 错误处理: ErrorCode, AppException, register_exception_handlers
- 中间件: RequestLoggingMiddleware, SecurityHeadersMiddleware
"""

# 配置管理
from .config import get_settings, Settings, reload_settings

# 内容目录
from .content import ContentPaths, init_content, get_content

# 安全认证
from .security import (
    get_current_user,
    require_roles,
    require_admin,
    require_author,
    create_token,
    decode_token,
    hash_password,
    verify_password,
    TokenData,
    ROLE_ADMIN,
    ROLE_AUTHOR
)

# 用户存储
from .accounts import UserService

# 错误处理
from .errors import (
    ErrorCode,
    AppException,
    ValidationException,
    AuthException,
    NotFoundException,
    ConflictException,
    StorageException,
    register_exception_handlers
)

# 中间件
from .middleware import (
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware
)


__all__ = [
    # 配置
    "get_settings",
    "Settings",
    "reload_settings",

    # 内容目录
    "ContentPaths",
    "init_content",
    "get_content",

    # 安全
    "get_current_user",
    "require_roles",
    "require_admin",
    "require_author",
    "create_token",
    "decode_token",
    "hash_password",
    "verify_password",
    "TokenData",
    "ROLE_ADMIN",
    "ROLE_AUTHOR",

    # 用户
    "UserService",

    # 错误
    "ErrorCode",
    "AppException",
    "ValidationException",
    "AuthException",
    "NotFoundException",
    "ConflictException",
    "StorageException",
    "register_exception_handlers",

    # 中间件
    "RequestLoggingMiddleware",
    "SecurityHeadersMiddleware",
]
