"""
博客数据模型
持久化为文件的记录结构，字段别名即 JSON 文件中的键名
"""

from datetime import datetime, timezone
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PostMeta(BaseModel):
    """
    博客文章元数据 (posts/{YYYY-MM-DD}-{slug}/meta.json)

    slug 与 folder_path 由目录名推导，不写入 meta.json
    """
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field("", alias="Title")
    description: str = Field("", alias="Description")
    published_date: datetime = Field(default_factory=utc_now, alias="PublishedDate")
    modification_date: datetime = Field(default_factory=utc_now, alias="ModificationDate")
    tags: List[str] = Field(default_factory=list, alias="Tags")
    categories: List[str] = Field(default_factory=list, alias="Categories")
    custom_url: Optional[str] = Field(None, alias="CustomUrl")
    is_draft: bool = Field(False, alias="isDraft")

    slug: Optional[str] = Field(None, exclude=True)
    folder_path: Optional[str] = Field(None, exclude=True)

    @field_validator("published_date", "modification_date")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        """无时区的时间按 UTC 处理"""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @field_validator("tags", "categories", mode="before")
    @classmethod
    def none_as_empty(cls, v):
        return v if v is not None else []


class Category(BaseModel):
    """博客分类 (categories/{slug}.json)"""
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field("", alias="Name")
    slug: str = Field("", alias="Slug")
    description: Optional[str] = Field(None, alias="Description")


class Tag(BaseModel):
    """博客标签 (tags/{slug}.json)"""
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field("", alias="Name")
    slug: str = Field("", alias="Slug")
