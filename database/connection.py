"""
Database connection management.
Provides sync and async SQLAlchemy engines built from a configurable URL.
"""

import os
from typing import Optional
from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool, NullPool

from utils import db_logger, config_manager, DatabaseError, ErrorCodes

# 异步驱动 -> 同步驱动
SYNC_DRIVERS = {
    "sqlite+aiosqlite": "sqlite",
    "postgresql+asyncpg": "postgresql",
}


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


class DatabaseManager:
    """数据库管理器"""

    def __init__(self, db_url: Optional[str] = None, echo: Optional[bool] = None):
        db_config = config_manager.get_database_config()
        self.db_url = db_url or db_config.get_async_url()
        self.echo = db_config.echo if echo is None else echo
        self.sync_engine = None
        self.async_engine = None
        self.SessionLocal = None
        self.AsyncSessionLocal = None

    @property
    def is_initialized(self) -> bool:
        return self.AsyncSessionLocal is not None

    @property
    def safe_url(self) -> str:
        """隐藏密码的连接串，用于日志和状态输出"""
        return make_url(self.db_url).render_as_string(hide_password=True)

    @property
    def dialect_name(self) -> str:
        return make_url(self.db_url).get_backend_name()

    def _sync_url(self) -> str:
        url = make_url(self.db_url)
        driver = SYNC_DRIVERS.get(url.drivername, url.drivername)
        return url.set(drivername=driver).render_as_string(hide_password=False)

    def _engine_kwargs(self, for_async: bool) -> dict:
        """根据数据库类型选择连接池参数"""
        if self.dialect_name != "sqlite":
            return {}

        database = make_url(self.db_url).database
        if not database or database == ":memory:":
            return {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}

        # 确保数据目录存在
        directory = os.path.dirname(database)
        if directory:
            os.makedirs(directory, exist_ok=True)

        if for_async:
            # 每个会话独立连接，避免跨事件循环复用
            return {"poolclass": NullPool}
        return {"connect_args": {"check_same_thread": False}}

    def initialize(self):
        """初始化数据库连接"""
        if self.is_initialized:
            return

        try:
            db_logger.info(f"[Database] Using database: {self.safe_url}")

            self.sync_engine = create_engine(
                self._sync_url(), echo=self.echo, **self._engine_kwargs(for_async=False)
            )
            self.async_engine = create_async_engine(
                self.db_url, echo=self.echo, **self._engine_kwargs(for_async=True)
            )

            if self.dialect_name == "sqlite":
                event.listen(self.sync_engine, "connect", _enable_sqlite_foreign_keys)
                event.listen(self.async_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

            # 创建会话工厂
            self.SessionLocal = sessionmaker(
                autocommit=False,
                autoflush=False,
                bind=self.sync_engine
            )

            self.AsyncSessionLocal = sessionmaker(
                autocommit=False,
                autoflush=False,
                expire_on_commit=False,
                bind=self.async_engine,
                class_=AsyncSession
            )

            db_logger.info("[Database] Database connection initialized successfully")

        except Exception as e:
            db_logger.error(f"[Database] Failed to initialize database: {e}")
            raise DatabaseError(
                f"Failed to initialize database: {e}",
                ErrorCodes.DB_CONNECTION_FAILED
            ) from e

    def create_tables(self):
        """创建数据库表（同步）"""
        from .models import Base

        try:
            Base.metadata.create_all(bind=self.sync_engine)
            db_logger.info("[Database] Database tables created successfully")
        except Exception as e:
            db_logger.error(f"[Database] Failed to create tables: {e}")
            raise DatabaseError(f"Failed to create tables: {e}", ErrorCodes.DB_QUERY_FAILED) from e

    async def create_tables_async(self):
        """创建数据库表（异步）"""
        from .models import Base

        try:
            async with self.async_engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            db_logger.info("[Database] Database tables created successfully")
        except Exception as e:
            db_logger.error(f"[Database] Failed to create tables: {e}")
            raise DatabaseError(f"Failed to create tables: {e}", ErrorCodes.DB_QUERY_FAILED) from e

    def get_session(self) -> Session:
        """获取同步数据库会话"""
        if not self.SessionLocal:
            raise RuntimeError("Database not initialized")
        return self.SessionLocal()

    def get_async_session(self) -> AsyncSession:
        """获取异步数据库会话"""
        if not self.AsyncSessionLocal:
            raise RuntimeError("Database not initialized")
        return self.AsyncSessionLocal()

    async def close(self):
        """关闭数据库连接"""
        try:
            if self.async_engine:
                await self.async_engine.dispose()
            if self.sync_engine:
                self.sync_engine.dispose()
            db_logger.info("[Database] Database connections closed")
        except Exception as e:
            db_logger.error(f"[Database] Error closing database connections: {e}")
        finally:
            self.sync_engine = None
            self.async_engine = None
            self.SessionLocal = None
            self.AsyncSessionLocal = None
