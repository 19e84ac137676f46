"""
用户管理数据验证
创建、更新、对外展示（不含密码哈希）
"""

from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field, field_validator

from utils.text import USERNAME_PATTERN


class UserCreate(BaseModel):
    """创建用户（明文密码，入库前加密）"""
    username: str = Field(..., min_length=3, max_length=50)
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=8, max_length=128)
    roles: List[str] = []

    @field_validator('username')
    @classmethod
    def validate_username(cls, v: str) -> str:
        v = v.strip()
        if not USERNAME_PATTERN.match(v):
            raise ValueError('用户名只能包含字母、数字、下划线、点和横线')
        return v


class UserUpdate(BaseModel):
    """
    更新用户
    邮箱、角色总是覆盖；password 为空时保留原密码
    """
    email: str = Field(..., min_length=3, max_length=255)
    password: Optional[str] = Field(None, max_length=128)
    roles: List[str] = []

    @field_validator('password')
    @classmethod
    def validate_password(cls, v: Optional[str]) -> Optional[str]:
        if v and len(v) < 8:
            raise ValueError('密码长度至少需要 8 个字符')
        return v


class UserInfo(BaseModel):
    """用户信息"""
    username: str
    email: str
    roles: List[str] = []

    model_config = ConfigDict(from_attributes=True)
