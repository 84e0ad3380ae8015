"""
AI对话接口
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from src.api.deps import get_current_user_id, get_llm_service, read_json
from src.services.llm_service import LLMService
from src.utils.errors import ValidationError
from src.utils.logger import logger

router = APIRouter(prefix="/ai", tags=["ai"])


@router.post("/chat")
async def chat(
    user_id: str = Depends(get_current_user_id),
    body: Dict[str, Any] = Depends(read_json),
    llm: LLMService = Depends(get_llm_service)
) -> Dict[str, str]:
    """
    生成反思回复

    Returns:
        {"data": 回复文本}
    """
    prompt = str(body.get("prompt") or "").strip()
    if not prompt:
        raise ValidationError("Prompt is required")

    logger.info(f"AI对话请求, 用户: {user_id}, 长度: {len(prompt)}")
    return {"data": await llm.complete(prompt)}
