"""
数据模型目录
"""

from .account import User

__all__ = ["User"]
