"""
统一响应格式
API返回的标准JSON结构
"""

from typing import Any, List


def success(data: Any = None, message: str = "success") -> dict:
    """成功响应"""
    return {
        "code": 200,
        "message": message,
        "data": data
    }


def paginate(items: List, total: int, page: int, size: int) -> dict:
    """分页响应（items 为当前页数据）"""
    pages = (total + size - 1) // size if size > 0 else 0
    return {
        "code": 200,
        "message": "success",
        "data": {
            "items": items,
            "total": total,
            "page": page,
            "size": size,
            "pages": pages
        }
    }
