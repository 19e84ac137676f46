"""
路由目录
"""

from . import auth, user, site, health

__all__ = ["auth", "user", "site", "health"]
