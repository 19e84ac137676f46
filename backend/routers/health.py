"""
健康检查路由
检查内容目录是否可用
"""

import logging
import os
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from core.config import get_settings
from core.content import ContentPaths, CONTENT_KINDS, get_content

logger = logging.getLogger(__name__)

router = APIRouter(tags=["健康检查"])

# 系统启动时间
_start_time = datetime.now(timezone.utc)


class ComponentHealth(BaseModel):
    """组件健康状态"""
    status: str
    message: Optional[str] = None


class HealthStatus(BaseModel):
    """健康状态响应"""
    status: str  # healthy, degraded, unhealthy
    version: str
    timestamp: str
    uptime_seconds: float
    components: dict


def check_content(content: ContentPaths) -> ComponentHealth:
    """检查内容根目录及子目录是否存在且可写"""
    if not content.root.is_dir():
        return ComponentHealth(status="unhealthy", message=f"内容目录不存在: {content.root}")

    missing = [kind for kind in CONTENT_KINDS if not (content.root / kind).is_dir()]
    if missing:
        return ComponentHealth(status="degraded", message=f"缺少子目录: {', '.join(missing)}")

    if not os.access(content.root, os.W_OK):
        return ComponentHealth(status="degraded", message="内容目录不可写")

    return ComponentHealth(status="healthy", message=str(content.root))


@router.get("/health", response_model=HealthStatus)
async def health_check(content: ContentPaths = Depends(get_content)):
    """健康检查端点"""
    content_health = check_content(content)
    if content_health.status != "healthy":
        logger.warning(f"内容目录状态异常: {content_health.message}")

    now = datetime.now(timezone.utc)
    return HealthStatus(
        status=content_health.status,
        version=get_settings().app_version,
        timestamp=now.isoformat(),
        uptime_seconds=round((now - _start_time).total_seconds(), 2),
        components={"content": content_health.model_dump()}
    )


@router.get("/health/live")
async def liveness_probe():
    """存活探针"""
    return {"status": "alive"}
