"""
工具模块包
提供项目所需的通用工具和功能
"""

# 导出核心工具
from .config_manager import (
    config_manager,
    UnifiedConfigManager,
    LoggingConfig,
    DatabaseConfig,
    AuthConfig,
    QuotesConfig,
    ApiConfig
)
from .exceptions import (
    QuoteSystemError,
    ConfigurationError,
    DatabaseError,
    ValidationError,
    NotFoundError,
    AuthenticationError,
    KeySetUnavailableError,
    ErrorCodes,
    create_error_response,
    handle_exception
)
from .logging_manager import (
    LogContext,
    log_execution,
    logging_manager,
    logger,
    LogConfig,
    initialize_logging,
    ModuleLoggers,
    api_logger,
    db_logger,
    auth_logger,
    quote_logger,
    config_logger
)
from .security_utils import RateLimiter
from .date_utils import get_utc_time, ensure_utc
from .path_utils import BASE_DIR, CONFIG_DIR, LOG_DIR, DATA_DIR

# 版本信息
__version__ = "1.0.0"

__all__ = [
    # 配置管理
    "config_manager",
    "UnifiedConfigManager",
    "LoggingConfig",
    "DatabaseConfig",
    "AuthConfig",
    "QuotesConfig",
    "ApiConfig",

    # 异常处理
    "QuoteSystemError",
    "ConfigurationError",
    "DatabaseError",
    "ValidationError",
    "NotFoundError",
    "AuthenticationError",
    "KeySetUnavailableError",
    "ErrorCodes",
    "create_error_response",
    "handle_exception",

    # 日志工具
    "LogContext",
    "log_execution",
    "logging_manager",
    "logger",
    "LogConfig",
    "initialize_logging",
    "ModuleLoggers",
    "api_logger",
    "db_logger",
    "auth_logger",
    "quote_logger",
    "config_logger",

    # 安全工具
    "RateLimiter",

    # 时间工具
    "get_utc_time",
    "ensure_utc",

    # 路径工具
    "BASE_DIR",
    "CONFIG_DIR",
    "LOG_DIR",
    "DATA_DIR",
]
