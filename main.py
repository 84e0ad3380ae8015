"""
日记应用主入口
启动FastAPI应用，提供登录、日记和AI对话接口
"""

from src.app import create_app
from src.utils.config import settings
from src.utils.logger import logger

# 创建FastAPI应用
app = create_app(settings)


if __name__ == "__main__":
    import uvicorn

    logger.info(f"启动服务器: {settings.host}:{settings.port}")
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
