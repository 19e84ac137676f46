"""
用户管理路由
用户资料保存在 users/{username}/profile.json
"""

import logging
from fastapi import APIRouter, Depends

from core.accounts import UserService
from core.deps import get_user_service
from core.errors import ErrorCode, NotFoundException
from core.security import TokenData, hash_password, require_admin
from schemas import UserCreate, UserUpdate, UserInfo, success

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["用户管理"])


@router.get("")
async def list_users(
    service: UserService = Depends(get_user_service),
    current_user: TokenData = Depends(require_admin())
):
    """用户列表（按用户名排序）"""
    users = await service.list_all()
    return success([UserInfo.model_validate(u).model_dump() for u in users])


@router.get("/{username}")
async def get_user(username: str, service: UserService = Depends(get_user_service)):
    """获取用户公开信息（不含密码哈希）"""
    user = await service.get_by_username(username)
    if user is None:
        raise NotFoundException("用户", username, code=ErrorCode.ACCOUNT_NOT_FOUND)
    return success(UserInfo.model_validate(user).model_dump())


@router.post("")
async def create_user(
    data: UserCreate,
    service: UserService = Depends(get_user_service),
    current_user: TokenData = Depends(require_admin())
):
    """创建用户"""
    user = await service.create(
        username=data.username,
        email=data.email,
        hashed_password=hash_password(data.password),
        roles=data.roles
    )
    return success(UserInfo.model_validate(user).model_dump(), "用户已创建")


@router.put("/{username}")
async def update_user(
    username: str,
    data: UserUpdate,
    service: UserService = Depends(get_user_service),
    current_user: TokenData = Depends(require_admin())
):
    """更新用户（未提供新密码时保留原密码）"""
    hashed = hash_password(data.password) if data.password else None
    user = await service.update(
        username=username,
        email=data.email,
        hashed_password=hashed,
        roles=data.roles
    )
    return success(UserInfo.model_validate(user).model_dump(), "用户已更新")


@router.delete("/{username}")
async def delete_user(
    username: str,
    service: UserService = Depends(get_user_service),
    current_user: TokenData = Depends(require_admin())
):
    """删除用户"""
    await service.delete(username)
    return success(message="用户已删除")
