"""
工具函数目录
按功能分类组织
"""

from .text import generate_slug, equals_ignore_case, is_safe_username, USERNAME_PATTERN
from .storage import read_record, write_record, read_text, write_text, dump_record

__all__ = [
    # 文本处理
    "generate_slug",
    "equals_ignore_case",
    "is_safe_username",
    "USERNAME_PATTERN",
    # 文件存储
    "read_record",
    "write_record",
    "read_text",
    "write_text",
    "dump_record"
]
