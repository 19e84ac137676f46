"""
认证数据验证
登录请求与令牌响应
"""

from datetime import datetime
from pydantic import BaseModel, Field

from .user import UserInfo


class UserLogin(BaseModel):
    """用户登录"""
    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1, max_length=128)


class LoginResult(BaseModel):
    """登录结果"""
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    expires_at: datetime
    user: UserInfo
