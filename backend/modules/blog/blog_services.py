"""
博客业务逻辑
文章、分类、标签均以文件形式存储在内容目录下
"""

import asyncio
import logging
import shutil
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Generic, List, Optional, Type, TypeVar

import aiofiles.os

from core.content import ContentPaths, POSTS, CATEGORIES, TAGS
from core.errors import ErrorCode, NotFoundException, ConflictException, StorageException
from utils.storage import read_record, write_record, read_text, write_text
from utils.text import generate_slug, equals_ignore_case

from .blog_models import PostMeta, Category, Tag
from .blog_schemas import (
    PostCreate, PostUpdate,
    CategoryCreate, CategoryUpdate,
    TagCreate, TagUpdate
)

logger = logging.getLogger(__name__)

META_FILE = "meta.json"
CONTENT_FILE = "content.md"
DATE_FORMAT = "%Y-%m-%d"


def has_date_prefix(folder_name: str) -> bool:
    """目录名是否形如 YYYY-MM-DD-xxx（第 4、7、10 位为横线）"""
    return (
        len(folder_name) > 10
        and folder_name[4] == "-"
        and folder_name[7] == "-"
        and folder_name[10] == "-"
    )


def slug_from_folder(folder_name: str) -> str:
    """从目录名推导 slug；格式不符时整个目录名即为 slug"""
    if len(folder_name) > 11 and has_date_prefix(folder_name):
        return folder_name[11:]
    return folder_name


class PostService:
    """文章服务"""

    def __init__(self, content: ContentPaths):
        self.content = content
        self.root = content.posts

    @staticmethod
    def _base_slug(title: str, custom_url: Optional[str]) -> str:
        """优先使用自定义 URL 生成 slug，否则使用标题"""
        return generate_slug(custom_url) if custom_url else generate_slug(title)

    async def _write_post(self, folder: Path, meta: PostMeta, content: str):
        """写入 meta.json 与 content.md"""
        if not await write_record(folder / META_FILE, meta):
            raise StorageException(f"写入文章元数据失败: {folder.name}")
        if not await write_text(folder / CONTENT_FILE, content):
            raise StorageException(f"写入文章正文失败: {folder.name}")

    async def _rename_back(self, src: Path, dst: Path):
        """写入失败后把已重命名的目录改回原名"""
        try:
            await aiofiles.os.rename(src, dst)
        except OSError as e:
            logger.error(f"回滚文章目录重命名失败: {src} -> {dst}, 错误: {e}")

    # ============ 查询 ============

    async def list_all(self) -> List[PostMeta]:
        """获取所有文章（按发布时间倒序）"""
        posts: List[PostMeta] = []

        if not await aiofiles.os.path.isdir(self.root):
            logger.warning(f"文章目录不存在: {self.root}")
            return posts

        try:
            folder_names = await aiofiles.os.listdir(self.root)
        except OSError as e:
            logger.error(f"读取文章目录失败: {self.root}, 错误: {e}")
            raise StorageException("读取文章列表失败")

        for folder_name in folder_names:
            folder = self.root / folder_name
            if not await aiofiles.os.path.isdir(folder):
                continue

            meta = await read_record(folder / META_FILE, PostMeta)
            if meta is None:
                continue

            meta.slug = slug_from_folder(folder_name)
            meta.folder_path = str(folder)
            posts.append(meta)

        posts.sort(key=lambda p: p.published_date, reverse=True)
        return posts

    async def get_by_slug(self, slug: str) -> Optional[PostMeta]:
        """通过slug获取文章（不区分大小写）"""
        for post in await self.list_all():
            if equals_ignore_case(post.slug, slug):
                return post
        return None

    async def get_content(self, folder_path: str) -> Optional[str]:
        """读取文章正文"""
        return await read_text(Path(folder_path) / CONTENT_FILE)

    # ============ 写入 ============

    async def create(self, data: PostCreate) -> PostMeta:
        """
        创建文章
        目录名为 当天UTC日期-slug，已存在时追加 Unix 时间戳后缀
        """
        base_slug = self._base_slug(data.title, data.custom_url)
        date_prefix = datetime.now(timezone.utc).strftime(DATE_FORMAT)

        async with self.content.lock(POSTS):
            folder_name = f"{date_prefix}-{base_slug}"
            folder = self.root / folder_name
            if await aiofiles.os.path.exists(folder):
                folder_name = f"{date_prefix}-{base_slug}-{int(time.time())}"
                folder = self.root / folder_name

            try:
                await aiofiles.os.makedirs(self.root, exist_ok=True)
                await aiofiles.os.mkdir(folder)
            except FileExistsError:
                logger.warning(f"文章目录已存在，放弃创建: {folder}")
                raise ConflictException(f"文章目录已存在: {folder_name}")
            except OSError as e:
                logger.error(f"创建文章目录失败: {folder}, 错误: {e}")
                raise StorageException("创建文章目录失败")

            now = datetime.now(timezone.utc)
            meta = PostMeta(
                title=data.title,
                description=data.description,
                published_date=now,
                modification_date=now,
                tags=list(data.tags),
                categories=list(data.categories),
                custom_url=data.custom_url,
                is_draft=data.is_draft,
                slug=slug_from_folder(folder_name),
                folder_path=str(folder)
            )
            try:
                await self._write_post(folder, meta, data.content)
            except StorageException:
                # 写入失败时移除刚建的目录
                await asyncio.to_thread(shutil.rmtree, folder, ignore_errors=True)
                raise

        logger.info(f"创建文章成功: {meta.title} -> {folder}")
        return meta

    async def update(self, original_slug: str, data: PostUpdate) -> PostMeta:
        """
        更新文章
        保留原目录的日期前缀；slug 变化时先重命名目录再覆盖写入
        """
        async with self.content.lock(POSTS):
            post = await self.get_by_slug(original_slug)
            if post is None or not post.folder_path:
                logger.warning(f"尝试更新不存在的文章: {original_slug}")
                raise NotFoundException("文章", original_slug, code=ErrorCode.BLOG_POST_NOT_FOUND)

            new_base_slug = self._base_slug(data.title, data.custom_url)
            current_folder = Path(post.folder_path)
            if has_date_prefix(current_folder.name):
                date_prefix = current_folder.name[:10]
            else:
                date_prefix = datetime.now(timezone.utc).strftime(DATE_FORMAT)

            new_folder_name = f"{date_prefix}-{new_base_slug}"
            new_folder = self.root / new_folder_name
            renamed = new_folder != current_folder

            if renamed:
                if await aiofiles.os.path.exists(new_folder):
                    logger.error(f"目标目录已存在，无法重命名文章 '{original_slug}': {new_folder}")
                    raise ConflictException(f"目标文章目录已存在: {new_folder_name}")
                try:
                    await aiofiles.os.rename(current_folder, new_folder)
                except OSError as e:
                    logger.error(f"重命名文章目录失败: {current_folder} -> {new_folder}, 错误: {e}")
                    raise StorageException("重命名文章目录失败")
                logger.info(f"文章目录已重命名: {current_folder.name} -> {new_folder_name}")

            post.title = data.title
            post.description = data.description
            post.modification_date = datetime.now(timezone.utc)
            post.tags = list(data.tags)
            post.categories = list(data.categories)
            post.custom_url = data.custom_url
            if data.is_draft is not None:
                post.is_draft = data.is_draft
            post.slug = slug_from_folder(new_folder_name)
            post.folder_path = str(new_folder)

            try:
                await self._write_post(new_folder, post, data.content)
            except StorageException:
                if renamed:
                    await self._rename_back(new_folder, current_folder)
                raise

        logger.info(f"更新文章成功: {post.title} (slug: {post.slug})")
        return post

    async def delete(self, slug: str) -> bool:
        """删除文章（递归删除目录）"""
        async with self.content.lock(POSTS):
            post = await self.get_by_slug(slug)
            if post is None or not post.folder_path:
                logger.warning(f"尝试删除不存在的文章: {slug}")
                raise NotFoundException("文章", slug, code=ErrorCode.BLOG_POST_NOT_FOUND)

            try:
                await asyncio.to_thread(shutil.rmtree, post.folder_path)
            except OSError as e:
                logger.error(f"删除文章目录失败: {post.folder_path}, 错误: {e}")
                raise StorageException("删除文章失败")

        logger.info(f"删除文章成功: {post.folder_path}")
        return True


T = TypeVar("T", Category, Tag)


class TaxonomyService(Generic[T]):
    """
    分类/标签通用服务
    每条记录一个 {slug}.json 文件，slug 在同类记录中唯一
    """

    kind: str = ""
    label: str = ""
    model: Type[T]
    not_found_code: int = ErrorCode.RESOURCE_NOT_FOUND

    def __init__(self, content: ContentPaths):
        self.content = content
        self.root: Path = content.root / self.kind

    def _path(self, slug: str) -> Path:
        return self.root / f"{slug}.json"

    def _build(self, name: str, slug: str, data) -> T:
        raise NotImplementedError

    def _apply(self, record: T, name: str, slug: str, data):
        record.name = name
        record.slug = slug

    async def list_all(self) -> List[T]:
        """获取全部记录（按名称排序），目录不存在时创建并返回空列表"""
        records: List[T] = []
        try:
            if not await aiofiles.os.path.isdir(self.root):
                await aiofiles.os.makedirs(self.root, exist_ok=True)
                return records

            for file_name in sorted(await aiofiles.os.listdir(self.root)):
                if not file_name.endswith(".json"):
                    continue
                path = self.root / file_name
                if not await aiofiles.os.path.isfile(path):
                    continue
                record = await read_record(path, self.model)
                if record is not None:
                    records.append(record)
        except OSError as e:
            logger.error(f"读取{self.label}目录失败: {self.root}, 错误: {e}")

        records.sort(key=lambda r: r.name.casefold())
        return records

    async def get_by_name(self, name: str) -> Optional[T]:
        """按名称查找（去除首尾空白，不区分大小写）"""
        name = name.strip()
        for record in await self.list_all():
            if equals_ignore_case(record.name, name):
                return record
        return None

    async def _create(self, name: str, data) -> T:
        name = name.strip()
        slug = generate_slug(name)
        path = self._path(slug)

        async with self.content.lock(self.kind):
            if await aiofiles.os.path.exists(path):
                logger.warning(f"{self.label} '{name}' (slug: {slug}) 已存在，跳过创建")
                raise ConflictException(f"{self.label}已存在: {name}")

            await aiofiles.os.makedirs(self.root, exist_ok=True)
            record = self._build(name, slug, data)
            if not await write_record(path, record):
                raise StorageException(f"写入{self.label}失败")

        logger.info(f"创建{self.label}成功: {name} (slug: {slug})")
        return record

    async def _update(self, old_name: str, new_name: str, data) -> T:
        async with self.content.lock(self.kind):
            records = await self.list_all()
            old_name = old_name.strip()
            record = next((r for r in records if equals_ignore_case(r.name, old_name)), None)
            if record is None:
                logger.warning(f"{self.label} '{old_name}' 不存在，无法更新")
                raise NotFoundException(self.label, old_name, code=self.not_found_code)

            original_slug = record.slug
            new_name = new_name.strip()
            new_slug = generate_slug(new_name)
            slug_changed = not equals_ignore_case(original_slug, new_slug)

            if slug_changed and any(
                equals_ignore_case(r.slug, new_slug) and not equals_ignore_case(r.slug, original_slug)
                for r in records
            ):
                logger.warning(f"新{self.label}名 '{new_name}' (slug: {new_slug}) 与已有记录冲突")
                raise ConflictException(f"{self.label}已存在: {new_name}")

            old_path = self._path(original_slug)
            target_path = old_path
            if slug_changed:
                target_path = self._path(new_slug)
                if await aiofiles.os.path.exists(target_path):
                    logger.error(f"目标文件已存在，无法重命名{self.label} '{old_name}': {target_path}")
                    raise ConflictException(f"{self.label}文件已存在: {new_slug}")
                try:
                    await aiofiles.os.rename(old_path, target_path)
                except OSError as e:
                    logger.error(f"重命名{self.label}文件失败: {old_path} -> {target_path}, 错误: {e}")
                    raise StorageException(f"重命名{self.label}失败")
                logger.info(f"{self.label}文件已重命名: {old_path.name} -> {target_path.name}")

            self._apply(record, new_name, new_slug, data)
            if not await write_record(target_path, record):
                if target_path != old_path:
                    try:
                        await aiofiles.os.rename(target_path, old_path)
                    except OSError as e:
                        logger.error(f"回滚{self.label}文件重命名失败: {target_path} -> {old_path}, 错误: {e}")
                raise StorageException(f"写入{self.label}失败")

        logger.info(f"更新{self.label}成功: '{old_name}' -> '{new_name}' (slug: {new_slug})")
        return record

    async def delete(self, name: str) -> bool:
        """按名称删除记录文件"""
        async with self.content.lock(self.kind):
            record = await self.get_by_name(name)
            if record is None:
                logger.warning(f"{self.label} '{name}' 不存在，无法删除")
                raise NotFoundException(self.label, name.strip(), code=self.not_found_code)

            path = self._path(record.slug)
            try:
                await aiofiles.os.remove(path)
            except FileNotFoundError:
                logger.warning(f"{self.label}文件不存在: {path}")
                raise NotFoundException(self.label, name.strip(), code=self.not_found_code)
            except OSError as e:
                logger.error(f"删除{self.label}文件失败: {path}, 错误: {e}")
                raise StorageException(f"删除{self.label}失败")

        logger.info(f"删除{self.label}成功: {path}")
        return True


class CategoryService(TaxonomyService[Category]):
    """分类服务"""

    kind = CATEGORIES
    label = "分类"
    model = Category
    not_found_code = ErrorCode.BLOG_CATEGORY_NOT_FOUND

    def _build(self, name: str, slug: str, data: CategoryCreate) -> Category:
        return Category(name=name, slug=slug, description=data.description)

    def _apply(self, record: Category, name: str, slug: str, data: CategoryUpdate):
        super()._apply(record, name, slug, data)
        record.description = data.description

    async def create(self, data: CategoryCreate) -> Category:
        """创建分类"""
        return await self._create(data.name, data)

    async def update(self, old_name: str, data: CategoryUpdate) -> Category:
        """更新分类"""
        return await self._update(old_name, data.new_name, data)


class TagService(TaxonomyService[Tag]):
    """标签服务"""

    kind = TAGS
    label = "标签"
    model = Tag
    not_found_code = ErrorCode.BLOG_TAG_NOT_FOUND

    def _build(self, name: str, slug: str, data: TagCreate) -> Tag:
        return Tag(name=name, slug=slug)

    async def create(self, data: TagCreate) -> Tag:
        """创建标签"""
        return await self._create(data.name, data)

    async def update(self, old_name: str, data: TagUpdate) -> Tag:
        """更新标签"""
        return await self._update(old_name, data.new_name, data)
