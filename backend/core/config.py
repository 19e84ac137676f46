"""
系统配置管理
统一管理所有配置项，支持环境变量覆盖
"""

from pathlib import Path
from pydantic_settings import BaseSettings
from typing import Optional

# 获取backend目录的绝对路径
BACKEND_DIR = Path(__file__).parent.parent.resolve()
ENV_FILE = BACKEND_DIR / ".env"

DEFAULT_JWT_SECRET = "your-secret-key-change-in-production"


class Settings(BaseSettings):
    """系统配置"""

    # 应用信息
    app_name: str = "File Blog System"
    app_version: str = "1.0.0"
    debug: bool = False

    # 内容目录（相对路径基于 backend 目录）
    content_dir: str = "content"

    @property
    def content_root(self) -> Path:
        path = Path(self.content_dir)
        if not path.is_absolute():
            path = BACKEND_DIR / path
        return path

    # JWT令牌配置
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_issuer: str = "FileBlogSystem"
    jwt_audience: str = "FileBlogSystemUsers"
    jwt_expire_minutes: int = 60  # 1小时

    # bcrypt 工作因子
    bcrypt_rounds: int = 10

    # 站点信息
    site_name: str = "My File Blog"
    site_description: str = "A lightweight, file-based blog system."
    posts_per_page: int = 5

    # 默认管理员账户配置（首次启动时创建）
    admin_username: str = "admin"
    admin_password: str = "admin123"  # 首次启动后请立即修改
    admin_email: str = "admin@example.com"

    class Config:
        env_file = str(ENV_FILE)
        env_file_encoding = "utf-8"


_settings_instance: Optional[Settings] = None


def get_settings() -> Settings:
    """
    获取配置单例
    支持运行时重新加载
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()

        # 安全检查: 如果是生产环境且使用默认密钥，发出警告
        if not _settings_instance.debug and _settings_instance.jwt_secret == DEFAULT_JWT_SECRET:
            import logging
            logging.getLogger("core.config").warning(
                "🚨 [安全警告] 您正在生产环境模式下使用默认的 JWT_SECRET！"
                "请立即在 .env 文件中配置 JWT_SECRET。"
            )
    return _settings_instance


def reload_settings() -> Settings:
    """
    重新加载配置
    仅重新加载配置，不清理已签发的Token
    """
    global _settings_instance
    _settings_instance = Settings()
    return _settings_instance
