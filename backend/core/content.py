"""
内容目录管理
所有数据以文件形式保存在内容根目录下，没有数据库

目录结构：
    content/
      posts/{YYYY-MM-DD}-{slug}/meta.json
      posts/{YYYY-MM-DD}-{slug}/content.md
      categories/{slug}.json
      tags/{slug}.json
      users/{username}/profile.json
"""

import asyncio
import logging
from pathlib import Path
from typing import Dict, Optional, Union

from .config import get_settings

logger = logging.getLogger(__name__)

POSTS = "posts"
CATEGORIES = "categories"
TAGS = "tags"
USERS = "users"

CONTENT_KINDS = (POSTS, CATEGORIES, TAGS, USERS)


class ContentPaths:
    """
    内容根目录

    每种实体持有一把互斥锁，写操作（定位 + 修改）在锁内完成，
    同一进程内并发的相同请求最多只有一个成功。读操作不加锁。
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)
        self.posts = self.root / POSTS
        self.categories = self.root / CATEGORIES
        self.tags = self.root / TAGS
        self.users = self.root / USERS
        self._locks: Dict[str, asyncio.Lock] = {kind: asyncio.Lock() for kind in CONTENT_KINDS}

    def ensure_dirs(self):
        """创建内容子目录（已存在则跳过）"""
        for kind in CONTENT_KINDS:
            (self.root / kind).mkdir(parents=True, exist_ok=True)

    def lock(self, kind: str) -> asyncio.Lock:
        """获取某类实体的写锁"""
        return self._locks[kind]


_content: Optional[ContentPaths] = None


def init_content(root: Optional[Union[str, Path]] = None) -> ContentPaths:
    """初始化内容目录（启动时调用，测试中可指定临时目录）"""
    global _content
    if root is None:
        root = get_settings().content_root
    _content = ContentPaths(root)
    _content.ensure_dirs()
    logger.info(f"📁 内容目录: {_content.root}")
    return _content


def get_content() -> ContentPaths:
    """获取内容目录（依赖注入用）"""
    if _content is None:
        return init_content()
    return _content
