"""
认证路由
用户登录、当前用户信息
"""

import logging
from datetime import datetime, timedelta, timezone
from fastapi import APIRouter, Depends, Request

from core.accounts import UserService
from core.config import get_settings
from core.deps import get_user_service
from core.errors import AuthException, ErrorCode
from core.middleware import get_client_ip
from core.security import (
    verify_password,
    create_token,
    TokenData,
    get_current_user,
    require_admin
)
from schemas import UserLogin, LoginResult, UserInfo, success

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/auth", tags=["认证"])


@router.post("/login")
async def login(
    data: UserLogin,
    request: Request,
    service: UserService = Depends(get_user_service)
):
    """用户登录"""
    client_ip = get_client_ip(request)
    user = await service.get_by_username(data.username)

    # 用户不存在或密码错误，统一返回 401
    if user is None or not verify_password(data.password, user.hashed_password):
        logger.warning(f"登录失败 - IP: {client_ip}, 用户名: {data.username}")
        raise AuthException(ErrorCode.LOGIN_FAILED, "用户名或密码错误")

    settings = get_settings()
    expires_delta = timedelta(minutes=settings.jwt_expire_minutes)
    access_token = create_token(
        TokenData(username=user.username, roles=user.roles),
        expires_delta
    )

    logger.info(f"🔑 用户登录成功: {user.username} (IP: {client_ip})")

    result = LoginResult(
        access_token=access_token,
        expires_in=int(expires_delta.total_seconds()),
        expires_at=datetime.now(timezone.utc) + expires_delta,
        user=UserInfo.model_validate(user)
    )
    return success(result.model_dump(mode="json"))


@router.get("/me")
async def get_me(current_user: TokenData = Depends(get_current_user)):
    """获取当前登录用户（令牌中的身份）"""
    return success({
        "username": current_user.username,
        "roles": current_user.roles,
        "message": f"Hello {current_user.username}"
    })


@router.get("/admin")
async def admin_info(current_user: TokenData = Depends(require_admin())):
    """管理员信息（仅 Admin）"""
    settings = get_settings()
    return success({
        "username": current_user.username,
        "roles": current_user.roles,
        "app_version": settings.app_version,
        "content_dir": str(settings.content_root)
    })
