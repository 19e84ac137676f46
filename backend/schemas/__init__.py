"""
数据验证模式目录
"""

from .user import UserCreate, UserUpdate, UserInfo
from .auth import UserLogin, LoginResult
from .response import success, paginate

__all__ = [
    # 认证
    "UserLogin", "LoginResult",
    # 用户管理
    "UserCreate", "UserUpdate", "UserInfo",
    # 响应
    "success", "paginate"
]
