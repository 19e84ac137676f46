"""
文本处理工具
"""

import re

_INVALID_CHARS = re.compile(r'[^a-z0-9\s-]')
_WHITESPACE = re.compile(r'\s+')
_HYPHENS = re.compile(r'-+')


def generate_slug(text: str) -> str:
    """
    生成URL友好的slug

    转小写 -> 去除 [a-z0-9]、空白、横线以外的字符 -> 空白转横线
    -> 去除首尾空白和横线 -> 合并连续横线

    不保证唯一性，调用方需自行检查冲突；空输入返回空字符串。

    Example:
        generate_slug("My First Post!!") -> "my-first-post"
    """
    if not text:
        return ""

    slug = text.lower()
    slug = _INVALID_CHARS.sub('', slug)
    slug = _WHITESPACE.sub('-', slug)
    slug = slug.strip().strip('-')
    slug = _HYPHENS.sub('-', slug)
    return slug


def equals_ignore_case(a: str, b: str) -> bool:
    """不区分大小写比较（与区域设置无关）"""
    if a is None or b is None:
        return a is b
    return a.casefold() == b.casefold()


# 用户名即目录名，只允许安全字符（不能以点开头，排除 "." 与 ".."）
USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.-]*$")


def is_safe_username(username: str) -> bool:
    """用户名能否安全地用作目录名"""
    return bool(username) and USERNAME_PATTERN.match(username) is not None
