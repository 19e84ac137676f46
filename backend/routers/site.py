"""
站点配置路由
"""

from fastapi import APIRouter

from core.config import get_settings
from schemas import success

router = APIRouter(prefix="/api/site", tags=["站点"])


@router.get("")
async def get_site_config():
    """站点名称、描述与每页文章数"""
    settings = get_settings()
    return success({
        "site_name": settings.site_name,
        "description": settings.site_description,
        "posts_per_page": settings.posts_per_page
    })
