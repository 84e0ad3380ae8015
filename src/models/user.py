"""
用户数据模型
定义用户资料相关的数据结构
"""

from typing import Optional
from pydantic import BaseModel


class User(BaseModel):
    """用户模型"""

    id: str
    email: str
    name: str
    theme_color: str = "purple"
    custom_color: str = ""
    total_entries: int = 0
    writing_streak: int = 0
    created_at: str
    updated_at: str

    class Config:
        from_attributes = True


class UserUpdate(BaseModel):
    """更新用户资料请求模型，只允许修改以下字段"""
    name: Optional[str] = None
    theme_color: Optional[str] = None
    custom_color: Optional[str] = None


class LoginResponse(BaseModel):
    """登录响应模型"""
    token: str
    user: User
