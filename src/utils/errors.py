"""
错误类型模块
定义业务层抛出的异常，每种异常携带HTTP状态码、消息和可选的附加数据
"""

from typing import Any, Optional


class AppError(Exception):
    """应用异常基类"""

    status: int = 500
    default_message: str = "Server error"

    def __init__(self, message: Optional[str] = None, data: Any = None):
        """
        初始化异常

        Args:
            message: 错误消息，默认使用类上的默认消息
            data: 附加数据，会原样放入错误响应的 data 字段
        """
        self.message = message or self.default_message
        self.data = data
        super().__init__(self.message)


class ValidationError(AppError):
    status = 400
    default_message = "Invalid request"


class Unauthorized(AppError):
    status = 401
    default_message = "Unauthorized"


class NotFound(AppError):
    status = 404
    default_message = "Not found"


class MethodNotAllowed(AppError):
    status = 405
    default_message = "Method not allowed"


class PayloadTooLarge(AppError):
    status = 413
    default_message = "Payload too large"


class GatewayError(AppError):
    status = 502
    default_message = "Upstream request failed"


class InternalError(AppError):
    status = 500
    default_message = "Server error"
