"""
博客数据验证模式
"""

from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field


# ============ 分类 ============

class CategoryCreate(BaseModel):
    """创建分类"""
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None


class CategoryUpdate(BaseModel):
    """更新分类（名称变化时 slug 随之变化，文件会被重命名）"""
    new_name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None


class CategoryInfo(BaseModel):
    """分类信息"""
    name: str
    slug: str
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


# ============ 标签 ============

class TagCreate(BaseModel):
    """创建标签"""
    name: str = Field(..., min_length=1, max_length=100)


class TagUpdate(BaseModel):
    """更新标签"""
    new_name: str = Field(..., min_length=1, max_length=100)


class TagInfo(BaseModel):
    """标签信息"""
    name: str
    slug: str

    model_config = ConfigDict(from_attributes=True)


# ============ 文章 ============

class PostCreate(BaseModel):
    """创建文章"""
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    tags: List[str] = []
    categories: List[str] = []
    custom_url: Optional[str] = None
    is_draft: bool = True


class PostUpdate(BaseModel):
    """
    更新文章
    标题或自定义 URL 变化时 slug 随之变化，目录会被重命名
    is_draft 为空时保留原值
    """
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    tags: List[str] = []
    categories: List[str] = []
    custom_url: Optional[str] = None
    is_draft: Optional[bool] = None


class PostListItem(BaseModel):
    """文章列表项"""
    title: str
    description: str
    slug: Optional[str]
    published_date: datetime
    modification_date: datetime
    tags: List[str] = []
    categories: List[str] = []
    custom_url: Optional[str] = None
    is_draft: bool

    model_config = ConfigDict(from_attributes=True)


class PostInfo(PostListItem):
    """文章详情（包含正文）"""
    content: str
