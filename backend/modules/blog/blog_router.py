"""
博客API路由
RESTful风格
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query

from core.config import get_settings
from core.content import ContentPaths, get_content
from core.errors import AppException, ErrorCode, NotFoundException, ValidationException
from core.security import TokenData, require_author
from schemas import success, paginate
from utils.text import generate_slug

from .blog_schemas import (
    PostCreate, PostUpdate, PostInfo, PostListItem,
    CategoryCreate, CategoryUpdate, CategoryInfo,
    TagCreate, TagUpdate, TagInfo
)
from .blog_services import PostService, CategoryService, TagService

router = APIRouter(prefix="/api", tags=["博客"])


def ensure_slug(text: str, field: str):
    """名称必须能生成非空 slug，否则无法作为文件名"""
    if not generate_slug(text):
        raise ValidationException(
            f"{field}无法生成有效的 slug",
            errors=[{"field": field, "message": "至少包含一个字母或数字"}]
        )


# ============ 分类接口 ============

@router.get("/categories")
async def list_categories(content: ContentPaths = Depends(get_content)):
    """获取分类列表"""
    categories = await CategoryService(content).list_all()
    return success([CategoryInfo.model_validate(c).model_dump() for c in categories])


@router.post("/categories")
async def create_category(
    data: CategoryCreate,
    content: ContentPaths = Depends(get_content),
    user: TokenData = Depends(require_author())
):
    """创建分类"""
    ensure_slug(data.name, "name")
    category = await CategoryService(content).create(data)
    return success(CategoryInfo.model_validate(category).model_dump(), "分类已创建")


@router.put("/categories/{name}")
async def update_category(
    name: str,
    data: CategoryUpdate,
    content: ContentPaths = Depends(get_content),
    user: TokenData = Depends(require_author())
):
    """更新分类（按名称定位）"""
    ensure_slug(data.new_name, "new_name")
    category = await CategoryService(content).update(name, data)
    return success(CategoryInfo.model_validate(category).model_dump(), "分类已更新")


@router.delete("/categories/{name}")
async def delete_category(
    name: str,
    content: ContentPaths = Depends(get_content),
    user: TokenData = Depends(require_author())
):
    """删除分类"""
    await CategoryService(content).delete(name)
    return success(message="分类已删除")


# ============ 标签接口 ============

@router.get("/tags")
async def list_tags(content: ContentPaths = Depends(get_content)):
    """获取标签列表"""
    tags = await TagService(content).list_all()
    return success([TagInfo.model_validate(t).model_dump() for t in tags])


@router.post("/tags")
async def create_tag(
    data: TagCreate,
    content: ContentPaths = Depends(get_content),
    user: TokenData = Depends(require_author())
):
    """创建标签"""
    ensure_slug(data.name, "name")
    tag = await TagService(content).create(data)
    return success(TagInfo.model_validate(tag).model_dump(), "标签已创建")


@router.put("/tags/{name}")
async def update_tag(
    name: str,
    data: TagUpdate,
    content: ContentPaths = Depends(get_content),
    user: TokenData = Depends(require_author())
):
    """更新标签（按名称定位）"""
    ensure_slug(data.new_name, "new_name")
    tag = await TagService(content).update(name, data)
    return success(TagInfo.model_validate(tag).model_dump(), "标签已更新")


@router.delete("/tags/{name}")
async def delete_tag(
    name: str,
    content: ContentPaths = Depends(get_content),
    user: TokenData = Depends(require_author())
):
    """删除标签"""
    await TagService(content).delete(name)
    return success(message="标签已删除")


# ============ 文章接口 ============

@router.get("/posts")
async def list_posts(
    page: Optional[int] = Query(None, ge=1),
    content: ContentPaths = Depends(get_content)
):
    """
    获取文章列表（按发布时间倒序）
    指定 page 时按站点配置的每页数量分页，否则返回全部
    """
    posts = await PostService(content).list_all()
    items = [PostListItem.model_validate(p).model_dump(mode="json") for p in posts]

    if page is None:
        return success(items)

    size = get_settings().posts_per_page
    start = (page - 1) * size
    return paginate(items[start:start + size], len(items), page, size)


@router.get("/posts/{slug}")
async def get_post(slug: str, content: ContentPaths = Depends(get_content)):
    """获取文章详情（包含正文）"""
    service = PostService(content)
    post = await service.get_by_slug(slug)
    if post is None:
        raise NotFoundException("文章", slug, code=ErrorCode.BLOG_POST_NOT_FOUND)

    body = await service.get_content(post.folder_path)
    if body is None:
        raise AppException(
            code=ErrorCode.BLOG_POST_CONTENT_MISSING,
            message=f"文章正文缺失: {post.slug}"
        )

    info = PostInfo(**PostListItem.model_validate(post).model_dump(), content=body)
    return success(info.model_dump(mode="json"))


@router.post("/posts")
async def create_post(
    data: PostCreate,
    content: ContentPaths = Depends(get_content),
    user: TokenData = Depends(require_author())
):
    """创建文章"""
    ensure_slug(data.custom_url or data.title, "custom_url" if data.custom_url else "title")
    post = await PostService(content).create(data)
    return success(PostListItem.model_validate(post).model_dump(mode="json"), "文章已创建")


@router.put("/posts/{slug}")
async def update_post(
    slug: str,
    data: PostUpdate,
    content: ContentPaths = Depends(get_content),
    user: TokenData = Depends(require_author())
):
    """更新文章（标题或自定义 URL 变化时 slug 随之变化）"""
    ensure_slug(data.custom_url or data.title, "custom_url" if data.custom_url else "title")
    post = await PostService(content).update(slug, data)
    return success(PostListItem.model_validate(post).model_dump(mode="json"), "文章已更新")


@router.delete("/posts/{slug}")
async def delete_post(
    slug: str,
    content: ContentPaths = Depends(get_content),
    user: TokenData = Depends(require_author())
):
    """删除文章"""
    await PostService(content).delete(slug)
    return success(message="文章已删除")
