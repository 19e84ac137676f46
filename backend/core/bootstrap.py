"""
系统引导初始化
首次启动时自动创建默认管理员账户
"""

import logging
from typing import Optional

from .config import get_settings
from .content import ContentPaths, get_content
from .accounts import UserService
from .errors import ConflictException
from .security import hash_password, ROLE_ADMIN

logger = logging.getLogger(__name__)


async def init_admin_user(content: Optional[ContentPaths] = None):
    """
    初始化默认管理员账户
    仅在 users/ 下还没有任何用户资料时创建
    """
    settings = get_settings()
    service = UserService(content or get_content())

    # 清理密码字符串（移除可能的注释和空白字符）
    admin_password = settings.admin_password.strip()
    if '#' in admin_password:
        admin_password = admin_password.split('#')[0].strip()

    if len(admin_password.encode('utf-8')) > 72:
        logger.warning("密码长度超过 72 字节，将被截断")

    if not admin_password:
        logger.error("管理员密码不能为空")
        return {
            "created": False,
            "message": "管理员密码不能为空"
        }

    existing = await service.list_all()
    if existing:
        logger.debug(f"已存在 {len(existing)} 个用户，跳过创建默认管理员")
        return {
            "created": False,
            "message": "已存在用户，跳过创建默认管理员"
        }

    try:
        admin_user = await service.create(
            username=settings.admin_username,
            email=settings.admin_email,
            hashed_password=hash_password(admin_password),
            roles=[ROLE_ADMIN]
        )
    except ConflictException:
        # 目录存在但资料文件缺失或损坏
        logger.warning(f"用户名 '{settings.admin_username}' 已被使用，跳过创建默认管理员")
        return {
            "created": False,
            "message": f"用户名 '{settings.admin_username}' 已被使用"
        }

    logger.info(f"默认管理员账户创建成功: {admin_user.username}")
    logger.warning(f"⚠️  默认密码: {admin_password}，请立即修改！")

    return {
        "created": True,
        "username": admin_user.username,
        "message": f"默认管理员账户已创建: {admin_user.username}"
    }
