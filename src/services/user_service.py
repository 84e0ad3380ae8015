"""
用户服务
管理用户的创建、查询和资料更新
"""

from typing import Any, Dict, Optional
from uuid import uuid4

from src.utils.database import Database
from src.utils.errors import NotFound, ValidationError
from src.utils.logger import logger
from src.utils.time_utils import now_iso

# 允许通过资料接口修改的字段
EDITABLE_FIELDS = ("name", "theme_color", "custom_color")


class UserService:
    """用户服务"""

    def __init__(self, db: Database):
        """
        初始化用户服务

        Args:
            db: 数据库实例
        """
        self.db = db

    def get_or_create_user_by_email(self, email: Any, name: Any = None) -> Dict[str, Any]:
        """
        根据邮箱获取用户，不存在时创建

        Args:
            email: 邮箱，去除首尾空白并转为小写后作为唯一标识
            name: 新用户的显示名称，缺省时使用邮箱@前的部分

        Returns:
            用户信息
        """
        if not isinstance(email, str) or not email.strip():
            raise ValidationError("Email is required")

        normalized_email = email.strip().lower()

        with self.db.transaction() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE email = ?", (normalized_email,)
            ).fetchone()
            if row:
                return dict(row)

            if not isinstance(name, str) or not name.strip():
                name = normalized_email.split("@")[0]

            now = now_iso()
            user = {
                "id": str(uuid4()),
                "email": normalized_email,
                "name": name,
                "theme_color": "purple",
                "custom_color": "",
                "total_entries": 0,
                "writing_streak": 0,
                "created_at": now,
                "updated_at": now
            }
            conn.execute("""
                INSERT INTO users
                (id, email, name, theme_color, custom_color, total_entries, writing_streak, created_at, updated_at)
                VALUES (:id, :email, :name, :theme_color, :custom_color, :total_entries, :writing_streak, :created_at, :updated_at)
            """, user)

        logger.info(f"新用户创建成功: {user['id']}")
        return user

    def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        """根据ID获取用户，不存在时返回None"""
        return self.db.fetch_one("SELECT * FROM users WHERE id = ?", (user_id,))

    def update_user(self, user_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        """
        更新用户资料

        Args:
            user_id: 用户ID
            patch: 待更新字段，只有 name、theme_color、custom_color 会被写入

        Returns:
            更新后的用户信息
        """
        changes = {
            key: value for key, value in (patch or {}).items()
            if key in EDITABLE_FIELDS and value is not None
        }

        with self.db.transaction() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
            if not row:
                logger.warning(f"用户不存在: {user_id}")
                raise NotFound("User not found")

            user = dict(row)
            user.update(changes)
            user["updated_at"] = now_iso()

            conn.execute("""
                UPDATE users SET name = ?, theme_color = ?, custom_color = ?, updated_at = ?
                WHERE id = ?
            """, (user["name"], user["theme_color"], user["custom_color"], user["updated_at"], user_id))

        logger.info(f"用户资料已更新: {user_id}, 字段: {sorted(changes)}")
        return user
