"""
日记服务
管理日记的创建、查询、更新和删除，并在每次变更后刷新用户统计
"""

import json
import sqlite3
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import uuid4

from src.services.stats_service import compute_stats
from src.utils.database import Database
from src.utils.errors import NotFound, ValidationError
from src.utils.logger import logger
from src.utils.time_utils import now_iso, parse_iso, to_iso, utc_now

# 允许通过更新接口覆盖的字段
PATCHABLE_FIELDS = (
    "title", "content", "mood", "themes", "milestone",
    "lessons_learned", "ai_insights", "date"
)

# 可以被显式置空的字段
NULLABLE_FIELDS = ("mood",)


class EntryService:
    """日记服务"""

    def __init__(self, db: Database):
        """
        初始化日记服务

        Args:
            db: 数据库实例
        """
        self.db = db

    def list_entries(self, user_id: str, sort: str = "-date", limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        获取用户的日记列表

        Args:
            user_id: 用户ID
            sort: 排序方式，-date 按日期倒序，date 按日期正序
            limit: 数量限制，None 或不大于0时不限制

        Returns:
            日记列表
        """
        direction = "DESC" if (sort or "-date").startswith("-") else "ASC"
        query = f"SELECT * FROM entries WHERE user_id = ? ORDER BY date {direction}, rowid ASC"
        params: tuple = (user_id,)
        if limit and limit > 0:
            query += " LIMIT ?"
            params += (limit,)

        results = self.db.fetch_all(query, params)
        return [self._format_entry(r) for r in results]

    def create_entry(self, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        创建日记

        Args:
            user_id: 用户ID
            data: 日记字段，缺省字段使用默认值（标题 Untitled、日期为当前时间）

        Returns:
            创建的日记
        """
        data = data or {}
        now = utc_now()
        now_str = to_iso(now)

        themes = data.get("themes")
        if not isinstance(themes, list):
            themes = data.get("tags") if isinstance(data.get("tags"), list) else []

        entry = {
            "id": str(uuid4()),
            "user_id": user_id,
            "title": data.get("title") or "Untitled",
            "content": data.get("content") or "",
            "mood": data.get("mood") or None,
            "themes": themes,
            "milestone": bool(data.get("milestone")),
            "lessons_learned": data.get("lessons_learned") or "",
            "ai_insights": data.get("ai_insights") or "",
            "date": to_iso(self._parse_date(data.get("date")) or now),
            "created_at": now_str,
            "updated_at": now_str
        }

        with self.db.transaction() as conn:
            conn.execute("""
                INSERT INTO entries
                (id, user_id, title, content, mood, themes, milestone, lessons_learned, ai_insights, date, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, self._to_row(entry))
            self._refresh_user_stats(conn, user_id, now_str)

        logger.info(f"日记创建成功: {entry['id']}, 用户: {user_id}")
        return entry

    def update_entry(self, user_id: str, entry_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        """
        更新日记（浅合并）

        Args:
            user_id: 用户ID
            entry_id: 日记ID
            patch: 待覆盖字段，id、user_id 和时间戳不可修改

        Returns:
            更新后的日记
        """
        changes = {}
        for key, value in (patch or {}).items():
            if key not in PATCHABLE_FIELDS:
                continue
            if value is None and key not in NULLABLE_FIELDS:
                continue
            changes[key] = value

        if "date" in changes:
            parsed_date = self._parse_date(changes.pop("date"))
            if parsed_date is not None:
                changes["date"] = to_iso(parsed_date)

        with self.db.transaction() as conn:
            row = conn.execute(
                "SELECT * FROM entries WHERE id = ? AND user_id = ?", (entry_id, user_id)
            ).fetchone()
            if not row:
                logger.warning(f"日记不存在: {entry_id}, 用户: {user_id}")
                raise NotFound("Entry not found")

            entry = self._format_entry(dict(row))
            entry.update(changes)
            entry["updated_at"] = now_iso()

            conn.execute("""
                UPDATE entries SET title = ?, content = ?, mood = ?, themes = ?, milestone = ?,
                    lessons_learned = ?, ai_insights = ?, date = ?, updated_at = ?
                WHERE id = ? AND user_id = ?
            """, (
                entry["title"], entry["content"], entry["mood"], json.dumps(entry["themes"]),
                int(bool(entry["milestone"])), entry["lessons_learned"], entry["ai_insights"],
                entry["date"], entry["updated_at"], entry_id, user_id
            ))
            self._refresh_user_stats(conn, user_id, entry["updated_at"])

        logger.info(f"日记更新成功: {entry_id}")
        return entry

    def delete_entry(self, user_id: str, entry_id: str) -> Dict[str, bool]:
        """
        删除日记

        Args:
            user_id: 用户ID
            entry_id: 日记ID

        Returns:
            {"ok": True}
        """
        with self.db.transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM entries WHERE id = ? AND user_id = ?", (entry_id, user_id)
            )
            if cursor.rowcount == 0:
                logger.warning(f"日记不存在: {entry_id}, 用户: {user_id}")
                raise NotFound("Entry not found")

            self._refresh_user_stats(conn, user_id, now_iso())

        logger.info(f"日记删除成功: {entry_id}")
        return {"ok": True}

    def _refresh_user_stats(self, conn: sqlite3.Connection, user_id: str, updated_at: str):
        """在当前事务中重新计算并写入用户统计"""
        rows = conn.execute("SELECT date FROM entries WHERE user_id = ?", (user_id,)).fetchall()
        stats = compute_stats(row["date"] for row in rows)
        conn.execute("""
            UPDATE users SET total_entries = ?, writing_streak = ?, updated_at = ?
            WHERE id = ?
        """, (stats["total_entries"], stats["writing_streak"], updated_at, user_id))

    def _parse_date(self, value: Any) -> Optional[datetime]:
        """解析日记日期，空值返回None，无法解析时抛出 ValidationError"""
        if value is None or value == "":
            return None
        parsed = parse_iso(value)
        if parsed is None:
            raise ValidationError("Invalid entry date")
        return parsed

    def _to_row(self, entry: Dict[str, Any]) -> tuple:
        """将日记转换为插入参数"""
        return (
            entry["id"], entry["user_id"], entry["title"], entry["content"], entry["mood"],
            json.dumps(entry["themes"]), int(entry["milestone"]), entry["lessons_learned"],
            entry["ai_insights"], entry["date"], entry["created_at"], entry["updated_at"]
        )

    def _format_entry(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """
        格式化日记数据

        Args:
            row: 数据库行

        Returns:
            格式化后的日记
        """
        return {
            "id": row["id"],
            "user_id": row["user_id"],
            "title": row["title"],
            "content": row["content"],
            "mood": row["mood"],
            "themes": json.loads(row["themes"]) if row["themes"] else [],
            "milestone": bool(row["milestone"]),
            "lessons_learned": row["lessons_learned"],
            "ai_insights": row["ai_insights"],
            "date": row["date"],
            "created_at": row["created_at"],
            "updated_at": row["updated_at"]
        }
