"""
统一的日志管理模块
整合基础日志配置和操作耗时记录
"""

import asyncio
import logging
import sys
import os
import time
import functools
import traceback
import threading
from pathlib import Path
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from typing import Optional, Dict, Any, Callable
from dataclasses import dataclass
from collections import defaultdict

from .exceptions import (
    QuoteSystemError, ValidationError, NotFoundError, AuthenticationError, ErrorCodes
)
from .config_manager import config_manager
from .path_utils import BASE_DIR

# 获取 logging_manager 模块的专用日志器
logger = logging.getLogger("LoggingManager")


@dataclass
class LogConfig:
    """日志配置"""
    level: str = "INFO"
    format: str = "[%(levelname)s][%(asctime)s][%(filename)s:%(lineno)d] - %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    file_max_bytes: int = 10 * 1024 * 1024  # 10MB
    file_backup_count: int = 5
    enable_console: bool = True
    enable_file: bool = True
    log_directory: Optional[str] = None
    log_filename: str = "sys.log"
    rotation_type: str = "size"  # "size" or "time"


class LoggingManager:
    """统一的日志管理器"""

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if hasattr(self, '_initialized'):
            return

        self._initialized = True
        self._loggers: Dict[str, logging.Logger] = {}
        self._config = LogConfig()
        self._metrics = defaultdict(int)

    def configure(self, config: LogConfig = None):
        """配置日志系统"""
        if config:
            self._config = config

        if self._config.log_directory is None:
            self._config.log_directory = str(BASE_DIR / "log")

        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, self._config.level.upper(), logging.INFO))

        # 清除现有处理器
        self._clear_handlers(root_logger)

        if self._config.enable_console:
            self._add_console_handler(root_logger)

        if self._config.enable_file:
            Path(self._config.log_directory).mkdir(parents=True, exist_ok=True)
            self._add_file_handler(root_logger)

    def configure_from_config_file(self):
        """从配置文件加载日志配置"""
        try:
            logging_config = config_manager.get_logging_config()

            # 相对路径相对于项目根目录
            log_directory = logging_config.file_config.directory
            if not os.path.isabs(log_directory):
                log_directory = str(BASE_DIR / log_directory)

            rotation_config = logging_config.file_config.rotation or {}

            config = LogConfig(
                level=logging_config.level,
                format=logging_config.format,
                date_format=logging_config.date_format,
                file_max_bytes=rotation_config.get('max_bytes_mb', 10) * 1024 * 1024,
                file_backup_count=rotation_config.get('backup_count', 5),
                enable_console=logging_config.console_config.enabled,
                enable_file=logging_config.file_config.enabled,
                log_directory=log_directory,
                log_filename=logging_config.file_config.filename,
                rotation_type=rotation_config.get('type', 'size')
            )

            self.configure(config)

            # 配置模块特定的日志级别
            self._configure_module_loggers(logging_config.modules)

            return logging_config

        except Exception as e:
            raise QuoteSystemError(
                f"Failed to configure logging from config file: {str(e)}",
                ErrorCodes.CONFIG_INVALID_FORMAT
            ) from e

    def _configure_module_loggers(self, modules_config: Dict[str, Any]):
        """配置模块特定的日志器，禁用的模块提升到 CRITICAL"""
        for module_name, module_config in modules_config.items():
            module_logger = self.get_logger(module_name)
            if module_config.enabled:
                module_logger.setLevel(getattr(logging, module_config.level.upper(), logging.INFO))
            else:
                module_logger.setLevel(logging.CRITICAL)

    def _clear_handlers(self, logger: logging.Logger):
        """清除现有处理器"""
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)

    def _add_console_handler(self, logger: logging.Logger):
        """添加控制台处理器"""
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(
            self._config.format,
            datefmt=self._config.date_format
        ))
        logger.addHandler(console_handler)

    def _add_file_handler(self, logger: logging.Logger):
        """添加文件处理器"""
        log_file_path = Path(self._config.log_directory) / self._config.log_filename

        if self._config.rotation_type == "size":
            file_handler = RotatingFileHandler(
                filename=log_file_path,
                maxBytes=self._config.file_max_bytes,
                backupCount=self._config.file_backup_count,
                encoding="utf-8"
            )
        else:  # time rotation
            file_handler = TimedRotatingFileHandler(
                filename=log_file_path,
                when="midnight",
                interval=1,
                backupCount=self._config.file_backup_count,
                encoding="utf-8"
            )

        file_handler.setFormatter(logging.Formatter(
            self._config.format,
            datefmt=self._config.date_format
        ))
        logger.addHandler(file_handler)

    def get_logger(self, name: str = None) -> logging.Logger:
        """获取日志记录器"""
        if name is None:
            name = "quotesapi"

        if name not in self._loggers:
            self._loggers[name] = logging.getLogger(name)

        return self._loggers[name]

    def get_metrics(self) -> Dict[str, int]:
        """获取日志统计指标"""
        return dict(self._metrics)

    def reset_metrics(self):
        """重置统计指标"""
        self._metrics.clear()


class LogContext:
    """日志上下文管理器"""

    def __init__(self, module: str, operation: str = None,
                 subject: str = None, quote_id: str = None):
        self.module = module
        self.operation = operation
        self.subject = subject
        self.quote_id = quote_id
        self.start_time = None
        self.logger = logging_manager.get_logger(module)

    def __enter__(self):
        self.start_time = time.time()
        self.logger.debug(f"[{self._get_context_str()}] Starting operation")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = time.time() - self.start_time
        context = self._get_context_str()
        if exc_type is None:
            self.logger.debug(f"[{context}] Operation completed in {duration:.3f}s")
            logging_manager._metrics[f"{context}_completed"] += 1
        elif issubclass(exc_type, (ValidationError, NotFoundError, AuthenticationError)):
            # 业务异常由上层映射为响应，这里只记录
            self.logger.info(f"[{context}] Operation rejected in {duration:.3f}s: {exc_val}")
            logging_manager._metrics[f"{context}_rejected"] += 1
        else:
            self.logger.error(f"[{context}] Operation failed in {duration:.3f}s: {exc_val}")
            self.logger.debug(f"[{context}] Traceback: {''.join(traceback.format_tb(exc_tb))}")
            logging_manager._metrics[f"{context}_failed"] += 1

    def _get_context_str(self) -> str:
        """获取上下文字符串"""
        parts = [self.module]

        if self.operation:
            parts.append(self.operation)

        if self.subject:
            parts.append(f"Sub:{self.subject}")

        if self.quote_id:
            parts.append(f"Quote:{self.quote_id}")

        return ".".join(parts)


def log_execution(module: str, operation: str = None):
    """异步操作日志装饰器，从参数中提取 subject / quote_id"""
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            context = _extract_context_from_kwargs(kwargs)
            with LogContext(module, operation or func.__name__, **context):
                return await func(*args, **kwargs)

        if not asyncio.iscoroutinefunction(func):
            raise TypeError(f"log_execution only supports coroutine functions: {func.__name__}")
        return async_wrapper

    return decorator


def _extract_context_from_kwargs(kwargs: dict) -> Dict[str, Any]:
    """从关键字参数中提取上下文信息"""
    context = {}
    if kwargs.get('subject'):
        context['subject'] = kwargs['subject']
    if kwargs.get('quote_id'):
        context['quote_id'] = kwargs['quote_id']
    return context


# 全局日志管理器实例
logging_manager = LoggingManager()

# 兼容性：保持原有的 logger 接口
logger = logging_manager.get_logger()


class ModuleLoggers:
    """模块专用日志器集合"""

    API = logging_manager.get_logger("API")
    Database = logging_manager.get_logger("Database")
    Auth = logging_manager.get_logger("Auth")
    QuoteManager = logging_manager.get_logger("QuoteManager")
    Config = logging_manager.get_logger("Config")

    @classmethod
    def get_logger(cls, module_name: str):
        """获取指定模块的日志器"""
        return logging_manager.get_logger(module_name)


# 便捷的模块日志器别名
api_logger = ModuleLoggers.API
db_logger = ModuleLoggers.Database
auth_logger = ModuleLoggers.Auth
quote_logger = ModuleLoggers.QuoteManager
config_logger = ModuleLoggers.Config


def initialize_logging(use_config_file: bool = True):
    """初始化日志系统"""
    try:
        if use_config_file:
            logging_manager.configure_from_config_file()
        else:
            logging_manager.configure()

        logger.info("Logging system initialized successfully")
        return True

    except Exception as e:
        print(f"Failed to initialize logging: {e}")
        # 如果配置文件初始化失败，尝试使用默认配置
        if use_config_file:
            print("Falling back to default configuration...")
            logging_manager.configure(LogConfig(enable_file=False))
            logger.info("Logging system initialized with fallback config")
            return True

        raise QuoteSystemError(
            f"Failed to initialize logging: {str(e)}",
            ErrorCodes.CONFIG_INVALID_FORMAT
        ) from e
