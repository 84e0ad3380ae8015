"""
配置管理模块
管理应用的所有配置信息，包括服务器配置、数据库配置、会话配置和LLM配置
"""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """应用配置类"""

    # 服务器配置
    host: str = "0.0.0.0"
    port: int = 8000

    # 数据库配置
    database_url: str = "sqlite:///./chronicle.db"

    # 会话配置
    session_ttl_days: int = 30

    # 请求体大小上限（字节）
    max_body_bytes: int = 1_000_000

    # 日志配置
    log_level: str = "INFO"
    log_file: str = "logs/app.log"

    # LLM 配置（未配置 api_key 时使用固定回复）
    llm_api_key: str = ""
    llm_api_base: str = "https://api.openai.com/v1"
    llm_model: str = "gpt-4o-mini"
    llm_timeout: float = 30.0

    # 应用配置
    app_name: str = "Chronicle Journal"
    app_version: str = "1.0.0"
    debug: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """
    获取配置实例（单例模式）
    使用lru_cache确保只创建一个配置实例
    """
    return Settings()


# 导出配置实例
settings = get_settings()
