"""
日记数据模型
定义日记相关的数据结构
"""

from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, field_validator

from src.utils.time_utils import parse_iso


class Entry(BaseModel):
    """日记模型"""

    id: str
    user_id: str
    title: str
    content: str = ""
    mood: Optional[str] = None
    themes: List[str] = []
    milestone: bool = False
    lessons_learned: str = ""
    ai_insights: str = ""
    date: str
    created_at: str
    updated_at: str

    class Config:
        from_attributes = True


class _EntryFields(BaseModel):
    """创建和更新日记时可写入的字段"""

    title: Optional[str] = None
    content: Optional[str] = None
    mood: Optional[str] = None
    themes: Optional[List[str]] = None
    milestone: Optional[bool] = None
    lessons_learned: Optional[str] = None
    ai_insights: Optional[str] = None
    date: Optional[datetime] = None

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, value):
        """日期支持 Z 后缀、时区偏移和纯日期，统一转换为UTC"""
        if value is None:
            return None
        parsed = parse_iso(value)
        if parsed is None:
            raise ValueError("date must be an ISO-8601 date or datetime")
        return parsed


class EntryCreate(_EntryFields):
    """创建日记请求模型"""

    # 旧版客户端使用 tags 字段
    tags: Optional[List[str]] = None


class EntryUpdate(_EntryFields):
    """更新日记请求模型（只写入请求中出现的字段）"""
