"""
账户数据模型
用户资料文件 users/{username}/profile.json
"""

from typing import List
from pydantic import BaseModel, ConfigDict, Field, field_validator


class User(BaseModel):
    """用户资料"""
    model_config = ConfigDict(populate_by_name=True)

    username: str = Field("", alias="Username")
    email: str = Field("", alias="Email")
    roles: List[str] = Field(default_factory=list, alias="Roles")
    hashed_password: str = Field("", alias="HashedPassword")

    @field_validator("roles", mode="before")
    @classmethod
    def none_as_empty(cls, v):
        return v if v is not None else []
