# -*- coding: utf-8 -*-
"""
博客模块测试
覆盖：文章目录存储、分类/标签文件存储、并发写入、API 路由端点
"""

import asyncio
import json
from datetime import datetime, timezone
from pathlib import Path

import aiofiles.os
import pytest
from httpx import AsyncClient

from core.errors import ErrorCode, ConflictException, NotFoundException, StorageException
from modules.blog import blog_services
from modules.blog.blog_models import PostMeta
from modules.blog.blog_schemas import (
    PostCreate, PostUpdate,
    CategoryCreate, CategoryUpdate,
    TagCreate, TagUpdate
)
from modules.blog.blog_services import (
    PostService, CategoryService, TagService,
    slug_from_folder, has_date_prefix
)
from utils.storage import write_record


def freeze_time(monkeypatch, moment: datetime):
    """固定 blog_services 中的当前时间"""
    class FixedDatetime(datetime):
        @classmethod
        def now(cls, tz=None):
            return moment

    monkeypatch.setattr(blog_services, "datetime", FixedDatetime)


def new_post(**overrides) -> PostCreate:
    data = {
        "title": "My First Post!!",
        "description": "第一篇文章",
        "content": "# Hello\n\n正文内容",
        "tags": ["python", "fastapi"],
        "categories": ["Tech"],
    }
    data.update(overrides)
    return PostCreate(**data)


def post_update(**overrides) -> PostUpdate:
    data = {
        "title": "My First Post!!",
        "description": "第一篇文章",
        "content": "# Hello\n\n正文内容",
    }
    data.update(overrides)
    return PostUpdate(**data)


# ==================== 目录名解析 ====================

class TestFolderNames:
    """目录名与 slug"""

    def test_slug_from_dated_folder(self):
        assert slug_from_folder("2024-01-15-my-first-post") == "my-first-post"

    def test_slug_from_undated_folder(self):
        assert slug_from_folder("legacy-post") == "legacy-post"
        assert slug_from_folder("2024-01-15-") == "2024-01-15-"

    def test_has_date_prefix(self):
        assert has_date_prefix("2024-01-15-x") is True
        assert has_date_prefix("2024_01_15-x") is False
        assert has_date_prefix("short") is False


# ==================== 文章存储 ====================

@pytest.mark.asyncio
class TestPostService:
    """文章存储测试"""

    async def test_create_folder_layout(self, content, monkeypatch):
        freeze_time(monkeypatch, datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc))

        post = await PostService(content).create(new_post())

        folder = content.posts / "2024-01-15-my-first-post"
        assert post.slug == "my-first-post"
        assert post.folder_path == str(folder)
        assert (folder / "content.md").read_text(encoding="utf-8") == "# Hello\n\n正文内容"

        meta = json.loads((folder / "meta.json").read_text(encoding="utf-8"))
        assert meta["Title"] == "My First Post!!"
        assert meta["Tags"] == ["python", "fastapi"]
        assert meta["Categories"] == ["Tech"]
        assert meta["CustomUrl"] is None
        assert meta["isDraft"] is True
        assert meta["PublishedDate"] == meta["ModificationDate"]
        assert "slug" not in meta and "Slug" not in meta

    async def test_create_then_read_back(self, content):
        service = PostService(content)
        created = await service.create(new_post())

        post = await service.get_by_slug(created.slug)

        assert post.title == "My First Post!!"
        assert post.description == "第一篇文章"
        assert post.tags == ["python", "fastapi"]
        assert post.categories == ["Tech"]
        assert await service.get_content(post.folder_path) == "# Hello\n\n正文内容"

    async def test_get_by_slug_case_insensitive(self, content):
        service = PostService(content)
        await service.create(new_post())

        assert (await service.get_by_slug("MY-FIRST-POST")) is not None
        assert await service.get_by_slug("nope") is None

    async def test_custom_url_overrides_title(self, content):
        post = await PostService(content).create(new_post(custom_url="Hello Custom URL"))
        assert post.slug == "hello-custom-url"

    async def test_draft_flag_persisted(self, content):
        post = await PostService(content).create(new_post(is_draft=False))
        assert post.is_draft is False
        stored = await PostService(content).get_by_slug(post.slug)
        assert stored.is_draft is False

    async def test_same_title_same_day(self, content, monkeypatch):
        """同日同名文章得到两个目录，第二个带时间戳后缀"""
        freeze_time(monkeypatch, datetime(2024, 1, 15, tzinfo=timezone.utc))
        service = PostService(content)

        first = await service.create(new_post())
        second = await service.create(new_post(content="第二篇"))

        assert first.folder_path != second.folder_path
        assert second.slug.startswith("my-first-post-")
        assert second.slug.rsplit("-", 1)[1].isdigit()

        assert await service.get_content((await service.get_by_slug(first.slug)).folder_path) == "# Hello\n\n正文内容"
        assert await service.get_content((await service.get_by_slug(second.slug)).folder_path) == "第二篇"

    async def test_concurrent_creates(self, content):
        service = PostService(content)
        results = await asyncio.gather(
            service.create(new_post()),
            service.create(new_post()),
            return_exceptions=True
        )

        assert all(isinstance(r, PostMeta) for r in results)
        assert len({r.folder_path for r in results}) == 2
        assert len(await service.list_all()) == 2

    async def test_list_sorted_and_tolerant(self, content):
        service = PostService(content)
        older = PostMeta(title="Old", description="d", published_date=datetime(2023, 5, 1, tzinfo=timezone.utc))
        newer = PostMeta(title="New", description="d", published_date=datetime(2024, 5, 1, tzinfo=timezone.utc))
        for name, meta in (("2023-05-01-old", older), ("legacy", newer)):
            (content.posts / name).mkdir()
            await write_record(content.posts / name / "meta.json", meta)
        (content.posts / "2024-02-02-no-meta").mkdir()
        (content.posts / "2024-02-03-broken").mkdir()
        (content.posts / "2024-02-03-broken" / "meta.json").write_text("{", encoding="utf-8")
        (content.posts / "stray.txt").write_text("x", encoding="utf-8")

        posts = await service.list_all()

        assert [p.slug for p in posts] == ["legacy", "old"]

    async def test_list_missing_directory(self, content):
        content.posts.rmdir()
        assert await PostService(content).list_all() == []

    async def test_rename_on_title_change(self, content, monkeypatch):
        freeze_time(monkeypatch, datetime(2024, 1, 15, 8, 0, tzinfo=timezone.utc))
        service = PostService(content)
        created = await service.create(new_post())

        freeze_time(monkeypatch, datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc))
        updated = await service.update("my-first-post", post_update(
            title="Renamed Post", content="新正文", tags=["rust"]
        ))

        assert await service.get_by_slug("my-first-post") is None
        fetched = await service.get_by_slug("renamed-post")
        assert fetched is not None
        assert fetched.folder_path == str(content.posts / "2024-01-15-renamed-post")
        assert fetched.published_date == created.published_date
        assert fetched.modification_date > created.modification_date
        assert fetched.tags == ["rust"]
        assert await service.get_content(fetched.folder_path) == "新正文"
        assert updated.slug == "renamed-post"
        assert not (content.posts / "2024-01-15-my-first-post").exists()

    async def test_update_same_slug_rewrites_in_place(self, content):
        service = PostService(content)
        created = await service.create(new_post())

        await service.update(created.slug, post_update(description="新描述", content="改过的正文"))

        fetched = await service.get_by_slug(created.slug)
        assert fetched.folder_path == created.folder_path
        assert fetched.description == "新描述"
        assert await service.get_content(fetched.folder_path) == "改过的正文"

    async def test_update_keeps_draft_when_omitted(self, content):
        service = PostService(content)
        created = await service.create(new_post(is_draft=False))

        await service.update(created.slug, post_update())
        assert (await service.get_by_slug(created.slug)).is_draft is False

        await service.update(created.slug, post_update(is_draft=True))
        assert (await service.get_by_slug(created.slug)).is_draft is True

    async def test_update_undated_folder_gets_today(self, content, monkeypatch):
        freeze_time(monkeypatch, datetime(2024, 6, 1, tzinfo=timezone.utc))
        (content.posts / "legacy").mkdir()
        await write_record(content.posts / "legacy" / "meta.json", PostMeta(title="Legacy", description="d"))
        service = PostService(content)

        await service.update("legacy", post_update(title="Legacy"))

        assert (content.posts / "2024-06-01-legacy").is_dir()
        assert not (content.posts / "legacy").exists()

    async def test_update_target_exists_conflict(self, content, monkeypatch):
        freeze_time(monkeypatch, datetime(2024, 1, 15, tzinfo=timezone.utc))
        service = PostService(content)
        await service.create(new_post(title="First"))
        await service.create(new_post(title="Second"))

        with pytest.raises(ConflictException):
            await service.update("second", post_update(title="First"))

        assert (await service.get_by_slug("second")) is not None

    async def test_update_missing(self, content):
        with pytest.raises(NotFoundException):
            await PostService(content).update("ghost", post_update())

    async def test_delete(self, content):
        service = PostService(content)
        created = await service.create(new_post())

        assert await service.delete("My-First-Post") is True
        assert await service.get_by_slug(created.slug) is None
        assert list(content.posts.iterdir()) == []

    async def test_delete_missing(self, content):
        with pytest.raises(NotFoundException):
            await PostService(content).delete("ghost")


# ==================== 分类 / 标签存储 ====================

@pytest.mark.asyncio
class TestCategoryService:
    """分类存储测试"""

    async def test_create(self, content):
        category = await CategoryService(content).create(CategoryCreate(name="  Web Dev ", description="前端"))

        assert category.name == "Web Dev"
        assert category.slug == "web-dev"
        data = json.loads((content.categories / "web-dev.json").read_text(encoding="utf-8"))
        assert data == {"Name": "Web Dev", "Slug": "web-dev", "Description": "前端"}

    async def test_create_conflict_on_same_slug(self, content):
        service = CategoryService(content)
        await service.create(CategoryCreate(name="Tech"))

        with pytest.raises(ConflictException):
            await service.create(CategoryCreate(name="Tech "))
        with pytest.raises(ConflictException):
            await service.create(CategoryCreate(name="TECH!"))

    async def test_concurrent_create_single_winner(self, content):
        service = CategoryService(content)
        results = await asyncio.gather(
            service.create(CategoryCreate(name="Tech")),
            service.create(CategoryCreate(name="Tech")),
            return_exceptions=True
        )

        assert sum(1 for r in results if isinstance(r, ConflictException)) == 1
        assert len(await service.list_all()) == 1

    async def test_list_sorted_by_name(self, content):
        service = CategoryService(content)
        for name in ("Zeta", "Alpha", "Mid"):
            await service.create(CategoryCreate(name=name))
        (content.categories / "notes.txt").write_text("ignored", encoding="utf-8")

        assert [c.name for c in await service.list_all()] == ["Alpha", "Mid", "Zeta"]

    async def test_list_creates_missing_directory(self, content):
        content.categories.rmdir()
        assert await CategoryService(content).list_all() == []
        assert content.categories.is_dir()

    async def test_update_renames_file(self, content):
        service = CategoryService(content)
        await service.create(CategoryCreate(name="Tech", description="old"))

        category = await service.update("tech", CategoryUpdate(new_name="Technology", description="new"))

        assert category.slug == "technology"
        assert not (content.categories / "tech.json").exists()
        data = json.loads((content.categories / "technology.json").read_text(encoding="utf-8"))
        assert data["Name"] == "Technology"
        assert data["Description"] == "new"

    async def test_update_same_slug_keeps_file(self, content):
        service = CategoryService(content)
        await service.create(CategoryCreate(name="Tech"))

        category = await service.update("Tech", CategoryUpdate(new_name="TECH"))

        assert category.name == "TECH"
        assert category.slug == "tech"
        assert [p.name for p in content.categories.iterdir()] == ["tech.json"]

    async def test_update_conflict_with_other_record(self, content):
        service = CategoryService(content)
        await service.create(CategoryCreate(name="Tech"))
        await service.create(CategoryCreate(name="Life"))

        with pytest.raises(ConflictException):
            await service.update("Life", CategoryUpdate(new_name="tech"))

        assert (content.categories / "life.json").exists()

    async def test_update_missing(self, content):
        with pytest.raises(NotFoundException):
            await CategoryService(content).update("ghost", CategoryUpdate(new_name="x"))

    async def test_delete(self, content):
        service = CategoryService(content)
        await service.create(CategoryCreate(name="Tech"))

        assert await service.delete(" TECH ") is True
        assert await service.list_all() == []


@pytest.mark.asyncio
class TestTagService:
    """标签存储测试"""

    async def test_create_and_list(self, content):
        service = TagService(content)
        await service.create(TagCreate(name="Python"))

        tags = await service.list_all()
        assert [(t.name, t.slug) for t in tags] == [("Python", "python")]
        data = json.loads((content.tags / "python.json").read_text(encoding="utf-8"))
        assert data == {"Name": "Python", "Slug": "python"}

    async def test_rename(self, content):
        service = TagService(content)
        await service.create(TagCreate(name="Py"))

        tag = await service.update("py", TagUpdate(new_name="Python 3"))

        assert tag.slug == "python-3"
        assert (content.tags / "python-3.json").exists()
        assert not (content.tags / "py.json").exists()

    async def test_delete_missing_tag(self, content):
        with pytest.raises(NotFoundException):
            await TagService(content).delete("nonexistent")


# ==================== API 路由 ====================

@pytest.mark.asyncio
class TestPostAPI:
    """文章接口"""

    payload = {
        "title": "Hello API",
        "description": "接口测试",
        "content": "正文",
        "tags": ["api"],
        "categories": ["Tech"],
        "is_draft": False
    }

    async def test_crud_flow(self, author_client: AsyncClient):
        response = await author_client.post("/api/posts", json=self.payload)
        assert response.status_code == 200
        assert response.json()["data"]["slug"] == "hello-api"

        response = await author_client.get("/api/posts/hello-api")
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["content"] == "正文"
        assert data["is_draft"] is False
        assert "folder_path" not in data

        response = await author_client.put("/api/posts/hello-api", json={**self.payload, "title": "Hello Again"})
        assert response.status_code == 200
        assert response.json()["data"]["slug"] == "hello-again"
        assert (await author_client.get("/api/posts/hello-api")).status_code == 404

        response = await author_client.delete("/api/posts/hello-again")
        assert response.status_code == 200
        assert (await author_client.get("/api/posts/hello-again")).status_code == 404

    async def test_list_and_paginate(self, author_client: AsyncClient):
        for i in range(7):
            await author_client.post("/api/posts", json={**self.payload, "title": f"Post {i}"})

        response = await author_client.get("/api/posts")
        assert len(response.json()["data"]) == 7

        response = await author_client.get("/api/posts", params={"page": 2})
        data = response.json()["data"]
        assert data["total"] == 7
        assert data["size"] == 5
        assert data["pages"] == 2
        assert len(data["items"]) == 2

    async def test_missing_content_file(self, author_client: AsyncClient, content):
        await author_client.post("/api/posts", json=self.payload)
        post = await PostService(content).get_by_slug("hello-api")
        (Path(post.folder_path) / "content.md").unlink()

        response = await author_client.get("/api/posts/hello-api")
        assert response.status_code == 500

    async def test_title_without_slug_chars(self, author_client: AsyncClient):
        response = await author_client.post("/api/posts", json={**self.payload, "title": "!!!"})
        assert response.status_code == 400

    async def test_update_missing_post(self, author_client: AsyncClient):
        response = await author_client.put("/api/posts/ghost", json=self.payload)
        assert response.status_code == 404

    async def test_anonymous_cannot_create(self, client: AsyncClient):
        response = await client.post("/api/posts", json=self.payload)
        assert response.status_code == 401

    async def test_reader_cannot_delete(self, reader_client: AsyncClient):
        response = await reader_client.delete("/api/posts/anything")
        assert response.status_code == 403


@pytest.mark.asyncio
class TestTaxonomyAPI:
    """分类 / 标签接口"""

    async def test_category_flow(self, admin_client: AsyncClient):
        response = await admin_client.post("/api/categories", json={"name": "Tech", "description": "技术"})
        assert response.status_code == 200
        assert response.json()["data"] == {"name": "Tech", "slug": "tech", "description": "技术"}

        response = await admin_client.post("/api/categories", json={"name": "tech"})
        assert response.status_code == 409

        response = await admin_client.put("/api/categories/Tech", json={"new_name": "Technology"})
        assert response.status_code == 200
        assert response.json()["data"]["slug"] == "technology"

        response = await admin_client.get("/api/categories")
        assert [c["name"] for c in response.json()["data"]] == ["Technology"]

        response = await admin_client.delete("/api/categories/technology")
        assert response.status_code == 200
        assert (await admin_client.delete("/api/categories/technology")).status_code == 404

    async def test_tag_flow(self, author_client: AsyncClient):
        assert (await author_client.post("/api/tags", json={"name": "Python"})).status_code == 200

        response = await author_client.put("/api/tags/python", json={"new_name": "Python 3"})
        assert response.json()["data"] == {"name": "Python 3", "slug": "python-3"}

        assert (await author_client.delete("/api/tags/Python 3")).status_code == 200
        assert (await author_client.delete("/api/tags/Python 3")).status_code == 404

    async def test_tag_name_without_slug_chars(self, author_client: AsyncClient):
        response = await author_client.post("/api/tags", json={"name": "???"})
        assert response.status_code == 400

    async def test_list_is_public(self, client: AsyncClient):
        assert (await client.get("/api/categories")).status_code == 200
        assert (await client.get("/api/tags")).status_code == 200


# ==================== 文件系统故障 ====================

async def failed_write(path, record) -> bool:
    return False


async def failed_rename(src, dst):
    raise PermissionError(f"read-only: {src}")


@pytest.mark.asyncio
class TestStorageFailures:
    """写入、重命名失败时报告存储错误，并保持原有文件不变"""

    async def test_create_write_failure_removes_folder(self, content, monkeypatch):
        freeze_time(monkeypatch, datetime(2024, 1, 15, tzinfo=timezone.utc))
        service = PostService(content)

        monkeypatch.setattr(blog_services, "write_record", failed_write)
        with pytest.raises(StorageException):
            await service.create(new_post())
        assert list(content.posts.iterdir()) == []

        monkeypatch.setattr(blog_services, "write_record", write_record)
        post = await service.create(new_post())
        assert post.slug == "my-first-post"

    async def test_post_rename_failure_keeps_folder(self, content, monkeypatch):
        service = PostService(content)
        post = await service.create(new_post())

        monkeypatch.setattr(aiofiles.os, "rename", failed_rename)
        with pytest.raises(StorageException):
            await service.update("my-first-post", post_update(title="Renamed"))

        assert Path(post.folder_path).is_dir()
        stored = await service.get_by_slug("my-first-post")
        assert stored.title == "My First Post!!"
        assert await service.get_by_slug("renamed") is None

    async def test_post_write_failure_rolls_back_rename(self, content, monkeypatch):
        service = PostService(content)
        post = await service.create(new_post())

        monkeypatch.setattr(blog_services, "write_record", failed_write)
        with pytest.raises(StorageException):
            await service.update("my-first-post", post_update(title="Renamed"))

        assert Path(post.folder_path).is_dir()
        assert [p.name for p in content.posts.iterdir()] == [Path(post.folder_path).name]
        stored = await service.get_by_slug("my-first-post")
        assert stored.title == "My First Post!!"
        assert await service.get_content(stored.folder_path) == "# Hello\n\n正文内容"

    async def test_category_rename_failure_keeps_file(self, content, monkeypatch):
        service = CategoryService(content)
        await service.create(CategoryCreate(name="Tech"))

        monkeypatch.setattr(aiofiles.os, "rename", failed_rename)
        with pytest.raises(StorageException):
            await service.update("Tech", CategoryUpdate(new_name="Science"))

        assert (content.categories / "tech.json").is_file()
        assert not (content.categories / "science.json").exists()

    async def test_tag_write_failure_rolls_back_rename(self, content, monkeypatch):
        service = TagService(content)
        await service.create(TagCreate(name="Python"))

        monkeypatch.setattr(blog_services, "write_record", failed_write)
        with pytest.raises(StorageException):
            await service.update("Python", TagUpdate(new_name="Rust"))

        assert not (content.tags / "rust.json").exists()
        stored = json.loads((content.tags / "python.json").read_text(encoding="utf-8"))
        assert stored == {"Name": "Python", "Slug": "python"}

    async def test_api_reports_file_system_error(self, author_client: AsyncClient, content, monkeypatch):
        response = await author_client.post("/api/posts", json={"title": "Hello API", "description": "接口测试", "content": "正文"})
        assert response.status_code == 200

        monkeypatch.setattr(aiofiles.os, "rename", failed_rename)
        response = await author_client.put("/api/posts/hello-api", json={"title": "Other", "description": "接口测试", "content": "正文"})

        assert response.status_code == 500
        assert response.json()["code"] == ErrorCode.FILE_SYSTEM_ERROR
        assert (await author_client.get("/api/posts/hello-api")).status_code == 200


@pytest.mark.asyncio
class TestOrdering:
    """列表排序不区分大小写"""

    async def test_taxonomy_sorted_ignoring_case(self, content):
        service = TagService(content)
        for name in ("beta", "Alpha", "Gamma"):
            await service.create(TagCreate(name=name))

        assert [t.name for t in await service.list_all()] == ["Alpha", "beta", "Gamma"]
