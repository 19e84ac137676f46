"""
文件存储工具
单个实体 <-> 单个 JSON 文件的读写，以及 Markdown 正文的读写

- 文件不存在返回 None（正常情况，不视为错误）
- 字段名匹配不区分大小写
- 内容损坏时记录日志并返回 None
- 写入使用缩进格式，整体覆盖，不做备份
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Type, TypeVar, Union

import aiofiles
import aiofiles.os
from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

PathLike = Union[str, Path]


def _normalize_keys(model: Type[BaseModel], raw: Dict[str, Any]) -> Dict[str, Any]:
    """将 JSON 键名按不区分大小写的方式映射到模型字段别名"""
    lookup = {}
    for name, field in model.model_fields.items():
        alias = field.alias or name
        lookup[name.lower()] = alias
        lookup[alias.lower()] = alias
    return {lookup.get(key.lower(), key): value for key, value in raw.items()}


def dump_record(record: BaseModel) -> str:
    """序列化为缩进的 JSON 文本（使用持久化字段名）"""
    data = record.model_dump(mode="json", by_alias=True)
    return json.dumps(data, ensure_ascii=False, indent=2)


async def read_record(path: PathLike, model: Type[T]) -> Optional[T]:
    """
    读取 JSON 记录

    Args:
        path: 文件路径
        model: 记录模型类

    Returns:
        模型实例；文件不存在或内容损坏时返回 None
    """
    if not await aiofiles.os.path.isfile(path):
        logger.warning(f"文件不存在: {path}")
        return None

    try:
        async with aiofiles.open(path, "r", encoding="utf-8") as f:
            raw = json.loads(await f.read())
        if not isinstance(raw, dict):
            raise ValueError("JSON 根节点必须是对象")
        return model.model_validate(_normalize_keys(model, raw))
    except (OSError, ValueError, ValidationError) as e:
        logger.error(f"读取或解析 JSON 文件失败: {path}, 错误: {e}")
        return None


async def write_record(path: PathLike, record: BaseModel) -> bool:
    """写入 JSON 记录（整体覆盖）"""
    try:
        async with aiofiles.open(path, "w", encoding="utf-8") as f:
            await f.write(dump_record(record))
        return True
    except OSError as e:
        logger.error(f"写入 JSON 文件失败: {path}, 错误: {e}")
        return False


async def read_text(path: PathLike) -> Optional[str]:
    """读取文本文件，不存在或读取失败返回 None"""
    if not await aiofiles.os.path.isfile(path):
        logger.warning(f"文件不存在: {path}")
        return None

    try:
        async with aiofiles.open(path, "r", encoding="utf-8") as f:
            return await f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"读取文件失败: {path}, 错误: {e}")
        return None


async def write_text(path: PathLike, text: str) -> bool:
    """写入文本文件（整体覆盖）"""
    try:
        async with aiofiles.open(path, "w", encoding="utf-8") as f:
            await f.write(text)
        return True
    except OSError as e:
        logger.error(f"写入文件失败: {path}, 错误: {e}")
        return False
