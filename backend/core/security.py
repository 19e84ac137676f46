"""
统一鉴权模块
提供JWT令牌生成、验证和密码处理功能
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional
import bcrypt
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel

from .config import get_settings

# Bearer令牌认证
security = HTTPBearer(auto_error=False)

ROLE_ADMIN = "Admin"
ROLE_AUTHOR = "Author"


class TokenData(BaseModel):
    """令牌数据"""
    username: str
    roles: List[str] = []


def hash_password(password: str) -> str:
    """
    加密密码
    bcrypt 限制密码长度不超过 72 字节
    """
    if not isinstance(password, str):
        password = str(password)

    password_bytes = password.encode('utf-8')[:72]
    salt = bcrypt.gensalt(rounds=get_settings().bcrypt_rounds)
    hashed = bcrypt.hashpw(password_bytes, salt)
    return hashed.decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """验证密码（哈希格式错误时返回 False）"""
    if not isinstance(plain_password, str):
        plain_password = str(plain_password)
    if not hashed_password:
        return False

    password_bytes = plain_password.encode('utf-8')[:72]
    hashed_bytes = hashed_password.encode('utf-8')

    try:
        return bcrypt.checkpw(password_bytes, hashed_bytes)
    except ValueError:
        return False


def create_token(data: TokenData, expires_delta: Optional[timedelta] = None) -> str:
    """
    创建JWT令牌

    Args:
        data: 令牌数据
        expires_delta: 过期时间增量，默认使用配置的 jwt_expire_minutes
    """
    settings = get_settings()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.jwt_expire_minutes)
    expire = datetime.now(timezone.utc) + expires_delta

    to_encode = {
        "sub": data.username,
        "roles": list(data.roles),
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[TokenData]:
    """
    解码JWT令牌
    校验签名、签发者、受众和过期时间，任一失败返回 None
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer
        )
    except JWTError:
        return None

    username = payload.get("sub")
    if not username:
        return None
    roles = payload.get("roles") or []
    return TokenData(username=username, roles=roles)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> TokenData:
    """获取当前用户（依赖注入用）"""
    token_data = decode_token(credentials.credentials) if credentials else None

    if token_data is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="无效的认证凭据",
            headers={"WWW-Authenticate": "Bearer"}
        )

    return token_data


def require_roles(*roles: str):
    """角色检查依赖工厂：持有任一角色即可通过"""
    async def role_checker(user: TokenData = Depends(get_current_user)) -> TokenData:
        if not any(role in user.roles for role in roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"需要角色: {', '.join(roles)}"
            )
        return user
    return role_checker


def require_admin():
    """仅允许管理员访问（Admin 角色）"""
    return require_roles(ROLE_ADMIN)


def require_author():
    """允许作者及管理员访问（Author 或 Admin 角色）"""
    return require_roles(ROLE_ADMIN, ROLE_AUTHOR)
