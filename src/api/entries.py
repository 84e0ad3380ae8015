"""
日记接口
日记的列表、创建、更新和删除
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from src.api.deps import get_current_user_id, get_entry_service, parse_model, read_json
from src.models.entry import Entry, EntryCreate, EntryUpdate
from src.services.entry_service import EntryService

router = APIRouter(prefix="/entries", tags=["entries"])


@router.get("", response_model=List[Entry])
async def list_entries(
    sort: str = Query("-date"),
    limit: Optional[int] = Query(None),
    user_id: str = Depends(get_current_user_id),
    entries: EntryService = Depends(get_entry_service)
) -> List[Dict[str, Any]]:
    """
    获取当前用户的日记列表

    Args:
        sort: -date 按日期倒序（默认），date 按日期正序
        limit: 最多返回的条数，不大于0时返回全部
    """
    return entries.list_entries(user_id, sort=sort, limit=limit)


@router.post("", response_model=Entry)
async def create_entry(
    user_id: str = Depends(get_current_user_id),
    body: Dict[str, Any] = Depends(read_json),
    entries: EntryService = Depends(get_entry_service)
) -> Dict[str, Any]:
    """创建日记"""
    data = parse_model(EntryCreate, body)
    return entries.create_entry(user_id, data.model_dump())


@router.patch("/{entry_id}", response_model=Entry)
async def update_entry(
    entry_id: str,
    user_id: str = Depends(get_current_user_id),
    body: Dict[str, Any] = Depends(read_json),
    entries: EntryService = Depends(get_entry_service)
) -> Dict[str, Any]:
    """更新日记，只覆盖请求中出现的字段"""
    patch = parse_model(EntryUpdate, body)
    return entries.update_entry(user_id, entry_id, patch.model_dump(exclude_unset=True))


@router.delete("/{entry_id}")
async def delete_entry(
    entry_id: str,
    user_id: str = Depends(get_current_user_id),
    entries: EntryService = Depends(get_entry_service)
) -> Dict[str, bool]:
    """删除日记"""
    return entries.delete_entry(user_id, entry_id)
