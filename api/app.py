"""
FastAPI application for the quotes API.
Main application entry point for the API server.
"""

from datetime import datetime, timezone
from typing import Optional

import uvicorn
from contextlib import asynccontextmanager
from fastapi import FastAPI

from auth import ClaimVerifier
from database import DatabaseManager, QuoteStore
from quote_manager import QuoteManager
from utils import api_logger, config_manager, __version__

from .routes import router
from .middleware import setup_middleware


def build_quote_manager() -> QuoteManager:
    """按配置创建数据库与业务管理器"""
    store = QuoteStore(DatabaseManager())
    return QuoteManager(store, config_manager.get_quotes_config().random_fetch_size)


def create_app(quote_manager: Optional[QuoteManager] = None,
               verifier: Optional[ClaimVerifier] = None) -> FastAPI:
    """创建应用；未注入的依赖在启动时按配置创建"""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        api_logger.info("[API] Starting Quotes API...")

        app.state.quote_manager = quote_manager or build_quote_manager()
        app.state.verifier = verifier or ClaimVerifier.from_config(config_manager.get_auth_config())

        await app.state.quote_manager.initialize()
        api_logger.info("[API] QuoteManager initialized successfully")

        yield

        api_logger.info("[API] Shutting down Quotes API...")
        await app.state.quote_manager.close()

    app = FastAPI(
        title="Quotes API",
        description="Random quotes, saved-quote lists and comment threads",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan
    )

    setup_middleware(app)
    app.include_router(router, prefix="/api/quotes")

    @app.get("/")
    async def root():
        """根路径"""
        return {
            "message": "Quotes API",
            "version": __version__,
            "docs": "/docs",
            "status": "running"
        }

    @app.get("/health")
    async def health_check():
        """健康检查端点"""
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": __version__
        }

    return app


def run_server(host: Optional[str] = None, port: Optional[int] = None, reload: Optional[bool] = None):
    """启动 uvicorn 服务"""
    api_config = config_manager.get_api_config()
    host = host or api_config.host
    port = port or api_config.port
    reload = api_config.reload if reload is None else reload

    workers = max(api_config.workers, 1)

    api_logger.info(f"[API] Starting server on {host}:{port} (workers={workers})")

    # 开发模式
    if reload:
        uvicorn.run("api.app:create_app", factory=True, host=host, port=port, reload=True, log_level="info")
    # 多进程模式，uvicorn 要求以导入字符串加载应用
    elif workers > 1:
        uvicorn.run("api.app:create_app", factory=True, host=host, port=port, workers=workers, log_level="info")
    # 单进程模式
    else:
        uvicorn.run(create_app(), host=host, port=port, log_level="info")


if __name__ == "__main__":
    run_server()
