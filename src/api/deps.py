"""
接口依赖
Bearer 令牌认证、请求体读取和请求模型校验
"""

import json
from typing import Any, Dict, Optional, Type, TypeVar

from fastapi import Request
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from src.services.entry_service import EntryService
from src.services.llm_service import LLMService
from src.services.session_service import SessionService
from src.services.user_service import UserService
from src.utils.errors import PayloadTooLarge, Unauthorized, ValidationError
from src.utils.logger import logger

ModelT = TypeVar("ModelT", bound=BaseModel)


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def get_entry_service(request: Request) -> EntryService:
    return request.app.state.entry_service


def get_session_service(request: Request) -> SessionService:
    return request.app.state.session_service


def get_llm_service(request: Request) -> LLMService:
    return request.app.state.llm_service


def get_bearer_token(request: Request) -> Optional[str]:
    """
    从 Authorization 请求头中提取 Bearer 令牌

    Args:
        request: FastAPI请求对象

    Returns:
        令牌，请求头缺失或格式不正确时返回None
    """
    header = request.headers.get("authorization")
    if not header:
        return None

    scheme, _, token = header.partition(" ")
    if scheme != "Bearer" or not token or " " in token:
        return None
    return token


async def get_current_user_id(request: Request) -> str:
    """
    校验 Bearer 令牌并返回对应的用户ID

    Args:
        request: FastAPI请求对象

    Returns:
        用户ID
    """
    token = get_bearer_token(request)
    if not token:
        logger.warning(f"缺少有效的认证头: {request.method} {request.url.path}")
        raise Unauthorized()

    user_id = get_session_service(request).get_user_id(token)
    if not user_id:
        logger.warning(f"令牌无效: {request.method} {request.url.path}")
        raise Unauthorized()

    return user_id


async def read_json(request: Request) -> Dict[str, Any]:
    """
    读取JSON请求体

    请求体超过 max_body_bytes 时返回413，空请求体视为 {}

    Args:
        request: FastAPI请求对象

    Returns:
        解析后的JSON对象
    """
    limit = request.app.state.settings.max_body_bytes

    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > limit:
        raise PayloadTooLarge()

    chunks = []
    size = 0
    async for chunk in request.stream():
        chunks.append(chunk)
        size += len(chunk)
        if size > limit:
            raise PayloadTooLarge()

    body = b"".join(chunks)
    if not body.strip():
        return {}

    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.error(f"JSON解析错误: {e}")
        raise ValidationError("Invalid JSON")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def parse_model(model: Type[ModelT], data: Dict[str, Any]) -> ModelT:
    """
    使用 pydantic 模型校验请求数据

    Args:
        model: 请求模型类
        data: 请求数据

    Returns:
        模型实例
    """
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError("Invalid request body", data=json.loads(e.json(include_url=False)))
