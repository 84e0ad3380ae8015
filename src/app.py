"""
应用工厂
根据配置创建数据库、各项服务和FastAPI应用
"""

from typing import Optional

import httpx
from fastapi import FastAPI

from src.api import ai, auth, entries
from src.api.errors import register_error_handlers
from src.services.entry_service import EntryService
from src.services.llm_service import LLMService
from src.services.session_service import SessionService
from src.services.user_service import UserService
from src.utils.config import Settings, settings as default_settings
from src.utils.database import Database
from src.utils.logger import logger


def create_app(app_settings: Optional[Settings] = None,
               llm_transport: Optional[httpx.AsyncBaseTransport] = None) -> FastAPI:
    """
    创建FastAPI应用

    Args:
        app_settings: 应用配置，默认使用环境变量中的配置
        llm_transport: LLM 请求使用的 httpx 传输层

    Returns:
        FastAPI应用
    """
    app_settings = app_settings or default_settings

    app = FastAPI(
        title=app_settings.app_name,
        version=app_settings.app_version,
        debug=app_settings.debug
    )

    db = Database(app_settings.database_url)
    app.state.settings = app_settings
    app.state.db = db
    app.state.user_service = UserService(db)
    app.state.entry_service = EntryService(db)
    app.state.session_service = SessionService(db, ttl_days=app_settings.session_ttl_days)
    app.state.llm_service = LLMService.from_settings(app_settings, transport=llm_transport)

    register_error_handlers(app)
    app.include_router(auth.router)
    app.include_router(entries.router)
    app.include_router(ai.router)

    @app.on_event("startup")
    async def startup_event():
        """应用启动时执行"""
        logger.info(f"{app_settings.app_name} v{app_settings.app_version} 启动成功")
        logger.info(f"数据库路径: {db.db_path}")

    @app.on_event("shutdown")
    async def shutdown_event():
        """应用关闭时执行"""
        logger.info(f"{app_settings.app_name} 已关闭")

    @app.get("/")
    async def root():
        """根路径，返回应用信息"""
        return {
            "app_name": app_settings.app_name,
            "version": app_settings.app_version,
            "status": "running"
        }

    @app.get("/health")
    async def health_check():
        """健康检查接口"""
        return {"status": "healthy", "code": 0}

    return app
