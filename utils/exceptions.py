"""
统一异常定义模块
提供项目特定的异常类和错误处理机制
"""

from typing import Optional, Dict, Any


class QuoteSystemError(Exception):
    """语录系统基础异常类"""

    def __init__(self, message: str, error_code: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


class ConfigurationError(QuoteSystemError):
    """配置相关错误"""
    pass


class DatabaseError(QuoteSystemError):
    """数据库相关错误"""
    pass


class ValidationError(QuoteSystemError):
    """请求参数验证错误"""
    pass


class NotFoundError(QuoteSystemError):
    """资源不存在"""
    pass


class AuthenticationError(QuoteSystemError):
    """凭证缺失或无效"""
    pass


class KeySetUnavailableError(QuoteSystemError):
    """公钥集无法获取（网络故障、超时或刷新限流）"""
    pass


# 错误代码常量
class ErrorCodes:
    """错误代码常量"""

    # 配置错误
    CONFIG_NOT_FOUND = "CONFIG_001"
    CONFIG_INVALID_FORMAT = "CONFIG_002"
    CONFIG_MISSING_KEY = "CONFIG_003"

    # 数据库错误
    DB_CONNECTION_FAILED = "DB_001"
    DB_QUERY_FAILED = "DB_002"
    DB_TRANSACTION_FAILED = "DB_003"

    # 验证错误
    VALIDATION_MISSING_REQUIRED_FIELD = "VAL_004"
    VALIDATION_INVALID_FORMAT = "VAL_005"

    # 认证错误
    AUTH_MISSING_TOKEN = "AUTH_001"
    AUTH_INVALID_TOKEN = "AUTH_002"
    AUTH_KEYSET_UNAVAILABLE = "AUTH_003"

    # 资源错误
    QUOTE_NOT_FOUND = "QUOTE_001"


def create_error_response(error: QuoteSystemError) -> Dict[str, Any]:
    """创建标准化的错误响应"""
    return {"message": error.message}


def handle_exception(func):
    """统一异常处理装饰器（异步），将未知异常包装为 DatabaseError"""
    import functools

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except QuoteSystemError:
            # 已经是系统异常，直接重新抛出
            raise
        except Exception as e:
            raise DatabaseError(
                f"Unexpected error in {func.__name__}: {str(e)}",
                ErrorCodes.DB_QUERY_FAILED
            ) from e

    return wrapper
