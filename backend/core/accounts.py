"""
用户存储
每个用户一个目录 users/{username}/profile.json，用户名统一小写
"""

import asyncio
import logging
import shutil
from pathlib import Path
from typing import List, Optional

import aiofiles.os

from models import User
from utils.storage import read_record, write_record
from utils.text import is_safe_username
from .content import ContentPaths, USERS
from .errors import (
    ErrorCode,
    NotFoundException,
    ConflictException,
    StorageException,
    ValidationException
)

logger = logging.getLogger(__name__)

PROFILE_FILE = "profile.json"


def normalize_username(username: str) -> str:
    return username.strip().lower()


class UserService:
    """用户服务"""

    def __init__(self, content: ContentPaths):
        self.content = content
        self.root = content.users

    def _user_dir(self, username: str) -> Optional[Path]:
        """
        用户目录路径
        用户名不合法或解析后不在 users/ 目录正下方时返回 None
        """
        name = normalize_username(username)
        if not is_safe_username(name):
            return None
        user_dir = self.root / name
        if user_dir.resolve().parent != self.root.resolve():
            return None
        return user_dir

    def _require_user_dir(self, username: str) -> Path:
        user_dir = self._user_dir(username)
        if user_dir is None:
            logger.warning(f"拒绝非法用户名: {username!r}")
            raise NotFoundException("用户", normalize_username(username), code=ErrorCode.ACCOUNT_NOT_FOUND)
        return user_dir

    async def list_all(self) -> List[User]:
        """获取所有用户（按用户名排序）"""
        users: List[User] = []
        if not await aiofiles.os.path.isdir(self.root):
            return users

        for name in await aiofiles.os.listdir(self.root):
            profile = self.root / name / PROFILE_FILE
            if not await aiofiles.os.path.isfile(profile):
                continue
            user = await read_record(profile, User)
            if user is not None:
                users.append(user)

        users.sort(key=lambda u: u.username.casefold())
        return users

    async def get_by_username(self, username: str) -> Optional[User]:
        """按用户名直接读取 profile.json"""
        user_dir = self._user_dir(username)
        if user_dir is None:
            return None
        return await read_record(user_dir / PROFILE_FILE, User)

    async def create(
        self,
        username: str,
        email: str,
        hashed_password: str,
        roles: Optional[List[str]] = None
    ) -> User:
        """创建用户，目录或资料文件已存在时冲突"""
        username = normalize_username(username)
        user_dir = self._user_dir(username)
        if user_dir is None:
            logger.warning(f"拒绝创建非法用户名: {username!r}")
            raise ValidationException(f"用户名不合法: {username}")
        profile = user_dir / PROFILE_FILE

        async with self.content.lock(USERS):
            if await aiofiles.os.path.exists(user_dir) or await aiofiles.os.path.exists(profile):
                logger.warning(f"用户 '{username}' 已存在，无法创建")
                raise ConflictException(f"用户已存在: {username}", code=ErrorCode.ACCOUNT_EXISTS)

            try:
                await aiofiles.os.makedirs(user_dir)
            except FileExistsError:
                raise ConflictException(f"用户已存在: {username}", code=ErrorCode.ACCOUNT_EXISTS)
            except OSError as e:
                logger.error(f"创建用户目录失败: {user_dir}, 错误: {e}")
                raise StorageException("创建用户目录失败")

            user = User(
                username=username,
                email=(email or "").strip(),
                hashed_password=(hashed_password or "").strip(),
                roles=list(roles or [])
            )
            if not await write_record(profile, user):
                raise StorageException("写入用户资料失败")

        logger.info(f"创建用户成功: {username} (角色: {user.roles})")
        return user

    async def update(
        self,
        username: str,
        email: str,
        hashed_password: Optional[str] = None,
        roles: Optional[List[str]] = None
    ) -> User:
        """
        更新用户
        邮箱和角色总是覆盖；密码哈希只在提供了非空新值时替换
        """
        user_dir = self._require_user_dir(username)

        async with self.content.lock(USERS):
            user = await read_record(user_dir / PROFILE_FILE, User)
            if user is None:
                logger.warning(f"用户 '{username}' 不存在，无法更新")
                raise NotFoundException("用户", normalize_username(username), code=ErrorCode.ACCOUNT_NOT_FOUND)

            user.email = (email or "").strip()
            user.roles = list(roles or [])
            if hashed_password and hashed_password.strip():
                user.hashed_password = hashed_password.strip()

            if not await write_record(user_dir / PROFILE_FILE, user):
                raise StorageException("写入用户资料失败")

        logger.info(f"更新用户成功: {user.username}")
        return user

    async def delete(self, username: str) -> bool:
        """删除用户（递归删除用户目录）"""
        user_dir = self._require_user_dir(username)

        async with self.content.lock(USERS):
            if not await aiofiles.os.path.isdir(user_dir):
                logger.warning(f"用户目录不存在，无法删除: {user_dir}")
                raise NotFoundException("用户", normalize_username(username), code=ErrorCode.ACCOUNT_NOT_FOUND)

            try:
                await asyncio.to_thread(shutil.rmtree, user_dir)
            except OSError as e:
                logger.error(f"删除用户目录失败: {user_dir}, 错误: {e}")
                raise StorageException("删除用户失败")

        logger.info(f"删除用户成功: {user_dir.name}")
        return True
