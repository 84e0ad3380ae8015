"""
会话服务
签发、校验和撤销 Bearer 令牌
"""

import secrets
from datetime import timedelta
from typing import Optional

from src.utils.database import Database
from src.utils.logger import logger
from src.utils.time_utils import parse_iso, to_iso, utc_now


def new_token() -> str:
    """生成32字节随机数的 base64url 编码令牌"""
    return secrets.token_urlsafe(32)


class SessionService:
    """会话服务"""

    def __init__(self, db: Database, ttl_days: int = 30):
        """
        初始化会话服务

        Args:
            db: 数据库实例
            ttl_days: 令牌有效天数
        """
        self.db = db
        self.ttl = timedelta(days=ttl_days)

    def issue_token(self, user_id: str) -> str:
        """
        为用户签发新令牌

        Args:
            user_id: 用户ID

        Returns:
            令牌字符串
        """
        token = new_token()
        now = utc_now()
        self.db.execute(
            "INSERT INTO sessions (token, user_id, created_at, expires_at) VALUES (?, ?, ?, ?)",
            (token, user_id, to_iso(now), to_iso(now + self.ttl))
        )
        logger.info(f"令牌已签发, 用户: {user_id}")
        return token

    def get_user_id(self, token: str) -> Optional[str]:
        """
        根据令牌查找用户ID

        过期的令牌会被删除并视为不存在

        Args:
            token: 令牌

        Returns:
            用户ID，令牌不存在或已过期时返回None
        """
        session = self.db.fetch_one("SELECT * FROM sessions WHERE token = ?", (token,))
        if not session:
            return None

        expires_at = parse_iso(session["expires_at"])
        if expires_at is None or expires_at <= utc_now():
            self.db.execute("DELETE FROM sessions WHERE token = ?", (token,))
            logger.info(f"令牌已过期, 用户: {session['user_id']}")
            return None

        return session["user_id"]

    def revoke_token(self, token: str) -> bool:
        """
        撤销令牌

        Args:
            token: 令牌

        Returns:
            是否删除了会话
        """
        deleted = self.db.execute("DELETE FROM sessions WHERE token = ?", (token,))
        if deleted:
            logger.info("令牌已撤销")
        return deleted > 0
