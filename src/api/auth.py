"""
认证接口
登录、登出以及当前用户资料的查询和修改
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from src.api.deps import (
    get_bearer_token, get_current_user_id, get_session_service,
    get_user_service, parse_model, read_json
)
from src.models.user import LoginResponse, User, UserUpdate
from src.services.session_service import SessionService
from src.services.user_service import UserService
from src.utils.errors import NotFound
from src.utils.logger import logger

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
async def login(
    body: Dict[str, Any] = Depends(read_json),
    users: UserService = Depends(get_user_service),
    sessions: SessionService = Depends(get_session_service)
) -> Dict[str, Any]:
    """
    邮箱登录，首次登录时自动创建用户

    Returns:
        {"token": 令牌, "user": 用户信息}
    """
    user = users.get_or_create_user_by_email(body.get("email"), body.get("name"))
    token = sessions.issue_token(user["id"])
    logger.info(f"用户登录: {user['id']}")
    return {"token": token, "user": user}


@router.post("/logout")
async def logout(
    request: Request,
    user_id: str = Depends(get_current_user_id),
    sessions: SessionService = Depends(get_session_service)
) -> Dict[str, bool]:
    """撤销当前令牌"""
    sessions.revoke_token(get_bearer_token(request))
    logger.info(f"用户登出: {user_id}")
    return {"ok": True}


@router.get("/me", response_model=User)
async def get_me(
    user_id: str = Depends(get_current_user_id),
    users: UserService = Depends(get_user_service)
) -> Dict[str, Any]:
    """获取当前用户资料"""
    user = users.get_user(user_id)
    if not user:
        raise NotFound("User not found")
    return user


@router.patch("/me", response_model=User)
async def update_me(
    user_id: str = Depends(get_current_user_id),
    body: Dict[str, Any] = Depends(read_json),
    users: UserService = Depends(get_user_service)
) -> Dict[str, Any]:
    """修改当前用户资料（name、theme_color、custom_color）"""
    patch = parse_model(UserUpdate, body)
    return users.update_user(user_id, patch.model_dump(exclude_none=True))
