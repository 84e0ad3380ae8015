"""
错误处理
将所有异常转换为 {message, data?} 格式的JSON响应，异常不会越过接口层
"""

from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.routing import Match, compile_path

from src.utils.errors import AppError, MethodNotAllowed
from src.utils.logger import logger


def error_response(status: int, message: str, data: Any = None,
                   headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    """
    构造错误响应

    Args:
        status: HTTP状态码
        message: 错误消息
        data: 附加数据，为None时不输出 data 字段
        headers: 额外的响应头

    Returns:
        JSON响应
    """
    payload: Dict[str, Any] = {"message": message}
    if data is not None:
        payload["data"] = jsonable_encoder(data)
    return JSONResponse(status_code=status, content=payload, headers=headers)


HTTP_METHODS = {"GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS", "TRACE"}


def _collect_route_methods(routes, scope: Dict[str, Any], methods: set):
    """递归遍历路由（include_router 可能把子路由包装成嵌套路由），收集匹配当前路径的方法"""
    for route in routes:
        nested = getattr(route, "routes", None)
        if nested is not None and not getattr(route, "methods", None):
            _collect_route_methods(nested, scope, methods)
            continue
        if not getattr(route, "methods", None):
            continue
        match, _ = route.matches(scope)
        if match != Match.NONE:
            methods.update(route.methods)


def _openapi_methods(request: Request) -> set:
    """按 OpenAPI 文档中的完整路径匹配当前请求路径"""
    methods = set()
    paths = request.app.openapi().get("paths", {})
    for path, operations in paths.items():
        path_regex, _, _ = compile_path(path)
        if path_regex.match(request.url.path):
            methods.update(key.upper() for key in operations if key.upper() in HTTP_METHODS)
    return methods


def allowed_methods(request: Request, fallback: Optional[str] = None) -> List[str]:
    """
    列出当前路径上注册的所有方法

    Args:
        request: FastAPI请求对象
        fallback: 路由自身给出的 Allow 头，其他方式都找不到方法时使用

    Returns:
        排序后的方法列表
    """
    methods = _openapi_methods(request)
    if not methods:
        _collect_route_methods(request.app.router.routes, request.scope, methods)
    if not methods and fallback:
        methods = {method.strip() for method in fallback.split(",") if method.strip()}
    return sorted(methods)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return error_response(exc.status, exc.message, exc.data)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == MethodNotAllowed.status:
        fallback = (getattr(exc, "headers", None) or {}).get("Allow")
        allow = ", ".join(allowed_methods(request, fallback))
        return error_response(exc.status_code, MethodNotAllowed.default_message, headers={"Allow": allow})

    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return error_response(exc.status_code, message, headers=getattr(exc, "headers", None))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(400, "Invalid request", data=exc.errors())


async def catch_unhandled_errors(request: Request, call_next):
    """兜底中间件：未处理的异常统一返回500"""
    try:
        return await call_next(request)
    except Exception as e:
        logger.exception(f"处理请求时出错: {request.method} {request.url.path}: {e}")
        return error_response(500, "Server error")


def register_error_handlers(app: FastAPI):
    """为应用注册异常处理器"""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.middleware("http")(catch_unhandled_errors)
