"""
依赖注入
提供全局可复用的依赖项
"""

from fastapi import Depends

from .content import ContentPaths, get_content
from .accounts import UserService
from .security import get_current_user, require_roles, require_admin, require_author, TokenData
from .config import get_settings


# 重新导出常用依赖
__all__ = [
    "get_content",
    "get_current_user",
    "require_roles",
    "require_admin",
    "require_author",
    "get_settings",
    "get_user_service",
    "TokenData"
]


def get_user_service(content: ContentPaths = Depends(get_content)) -> UserService:
    """获取用户服务（每个请求一个实例）"""
    return UserService(content)
