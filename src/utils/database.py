"""
数据库管理模块
管理SQLite数据库连接和操作
用户、日记和会话各自按行存储，写操作在 BEGIN IMMEDIATE 事务中执行，并发写入由数据库串行化
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, List, Dict, Any, Iterator
from .errors import InternalError
from .logger import logger


class Database:
    """数据库管理类"""

    def __init__(self, db_url: str, timeout: float = 30.0):
        """
        初始化数据库连接

        Args:
            db_url: 数据库连接URL，例如 sqlite:///./chronicle.db
            timeout: 等待写锁的超时时间（秒）
        """
        self.db_url = db_url
        self.timeout = timeout
        self.db_path = self._parse_db_path()
        self._init_db()

    def _parse_db_path(self) -> str:
        """解析数据库文件路径"""
        if self.db_url.startswith("sqlite:///"):
            return self.db_url.replace("sqlite:///", "", 1)
        return self.db_url

    def _init_db(self):
        """初始化数据库，创建必要的表"""
        # 确保数据库目录存在
        db_dir = Path(self.db_path).parent
        db_dir.mkdir(parents=True, exist_ok=True)

        with self.transaction() as conn:
            # 创建用户表
            conn.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    email TEXT NOT NULL UNIQUE,
                    name TEXT NOT NULL,
                    theme_color TEXT NOT NULL DEFAULT 'purple',
                    custom_color TEXT NOT NULL DEFAULT '',
                    total_entries INTEGER NOT NULL DEFAULT 0,
                    writing_streak INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

            # 创建日记表
            conn.execute("""
                CREATE TABLE IF NOT EXISTS entries (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    title TEXT NOT NULL,
                    content TEXT NOT NULL DEFAULT '',
                    mood TEXT,
                    themes TEXT NOT NULL DEFAULT '[]',
                    milestone INTEGER NOT NULL DEFAULT 0,
                    lessons_learned TEXT NOT NULL DEFAULT '',
                    ai_insights TEXT NOT NULL DEFAULT '',
                    date TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    FOREIGN KEY (user_id) REFERENCES users(id)
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_entries_user_date ON entries (user_id, date)"
            )

            # 创建会话表
            conn.execute("""
                CREATE TABLE IF NOT EXISTS sessions (
                    token TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    expires_at TEXT NOT NULL,
                    FOREIGN KEY (user_id) REFERENCES users(id)
                )
            """)

        logger.info("数据库初始化完成")

    def get_connection(self) -> sqlite3.Connection:
        """获取数据库连接（自动提交模式，事务由 transaction 显式管理）"""
        try:
            conn = sqlite3.connect(self.db_path, timeout=self.timeout, isolation_level=None)
        except sqlite3.Error as e:
            logger.error(f"打开数据库失败: {e}")
            raise InternalError("Storage error") from e
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        开启写事务

        事务内抛出的任何异常都会回滚；业务异常原样抛出，SQLite异常转换为 InternalError

        Yields:
            处于事务中的数据库连接
        """
        conn = self.get_connection()
        try:
            conn.execute("BEGIN IMMEDIATE")
            yield conn
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            self._rollback(conn)
            logger.error(f"数据库事务失败: {e}")
            raise InternalError("Storage error") from e
        except Exception:
            self._rollback(conn)
            raise
        finally:
            conn.close()

    def _rollback(self, conn: sqlite3.Connection):
        """回滚未提交的事务"""
        if conn.in_transaction:
            conn.execute("ROLLBACK")

    def execute(self, query: str, params: tuple = ()) -> int:
        """
        执行SQL语句

        Args:
            query: SQL查询语句
            params: 查询参数

        Returns:
            影响的行数
        """
        with self.transaction() as conn:
            cursor = conn.execute(query, params)
            return cursor.rowcount

    def fetch_one(self, query: str, params: tuple = ()) -> Optional[Dict[str, Any]]:
        """
        查询单条记录

        Args:
            query: SQL查询语句
            params: 查询参数

        Returns:
            查询结果字典，如果没有则返回None
        """
        conn = self.get_connection()
        try:
            row = conn.execute(query, params).fetchone()
            return dict(row) if row else None
        except sqlite3.Error as e:
            logger.error(f"数据库查询失败: {e}")
            raise InternalError("Storage error") from e
        finally:
            conn.close()

    def fetch_all(self, query: str, params: tuple = ()) -> List[Dict[str, Any]]:
        """
        查询多条记录

        Args:
            query: SQL查询语句
            params: 查询参数

        Returns:
            查询结果列表
        """
        conn = self.get_connection()
        try:
            rows = conn.execute(query, params).fetchall()
            return [dict(row) for row in rows]
        except sqlite3.Error as e:
            logger.error(f"数据库查询失败: {e}")
            raise InternalError("Storage error") from e
        finally:
            conn.close()
