"""
Middleware for the quotes API.
Provides CORS, request logging, error mapping and security headers.
"""

import time
import uuid
from typing import Callable
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware

from utils import (
    api_logger, config_manager, create_error_response,
    QuoteSystemError, AuthenticationError, ValidationError, NotFoundError
)

UNAUTHORIZED_BODY = {"message": "Unauthorized."}


class LoggingMiddleware(BaseHTTPMiddleware):
    """日志中间件"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()
        request_id = uuid.uuid4().hex

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            api_logger.error(f"[API] {request.method} {request.url.path} - ERROR - {process_time:.3f}s - {str(e)}")
            raise

        process_time = time.time() - start_time
        api_logger.info(f"[API] {request.method} {request.url.path} - {response.status_code} - {process_time:.3f}s")

        response.headers["X-Process-Time"] = f"{process_time:.6f}"
        response.headers["X-Request-ID"] = request_id
        return response


def error_to_response(error: Exception) -> Response:
    """将异常映射为 HTTP 响应；404 与 500 不返回响应体"""
    if isinstance(error, AuthenticationError):
        return JSONResponse(status_code=401, content=UNAUTHORIZED_BODY)
    if isinstance(error, ValidationError):
        return JSONResponse(status_code=400, content=create_error_response(error))
    if isinstance(error, NotFoundError):
        return Response(status_code=404)
    return Response(status_code=500)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """错误处理中间件"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)

        except (AuthenticationError, ValidationError, NotFoundError) as e:
            api_logger.info(f"[API] {request.method} {request.url.path} rejected: {e.message}")
            return error_to_response(e)

        except QuoteSystemError as e:
            api_logger.error(f"[API] {request.method} {request.url.path} failed: [{e.error_code}] {e.message}")
            return error_to_response(e)

        except Exception as e:
            api_logger.error(f"[API] Unexpected error: {str(e)}", exc_info=True)
            return error_to_response(e)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """安全头中间件"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        return response


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """请求体无法解析或类型不符时返回 400"""
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    api_logger.info(f"[API] {request.method} {request.url.path} invalid request: {message}")
    return JSONResponse(status_code=400, content={"message": message})


def setup_cors(app: FastAPI):
    """设置CORS"""
    cors_origins = config_manager.get_api_config().cors_origins

    if "*" in cors_origins:
        api_logger.warning("[CORS] Using wildcard origin, credentials are not allowed")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials="*" not in cors_origins,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["Authorization", "Content-Type"],
    )


def setup_middleware(app: FastAPI):
    """设置所有中间件"""
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    # 后添加的中间件在外层，日志需要看到错误映射后的状态码
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    setup_cors(app)
    app.add_middleware(LoggingMiddleware)

    api_logger.info("[API] Middleware setup completed")
