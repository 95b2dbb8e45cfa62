"""
统一的配置管理模块
整合底层配置操作、环境变量覆盖和应用层类型安全访问
"""

import os
import json
import logging
from typing import Any, Optional, Dict, List, TypeVar, Callable
from dataclasses import dataclass, field
from pathlib import Path

from .exceptions import ConfigurationError, ErrorCodes
from .path_utils import CONFIG_DIR

# 获取配置专用日志器
config_logger = logging.getLogger("Config")

# 为泛型类型定义一个TypeVar
T = TypeVar('T')

# ============================================================================
# 配置数据类型定义
# ============================================================================

@dataclass
class LoggingModuleConfig:
    """模块日志配置"""
    level: str = "INFO"
    enabled: bool = True

@dataclass
class FileLoggingConfig:
    """文件日志配置"""
    enabled: bool = True
    directory: str = "log"
    filename: str = "sys.log"
    rotation: Optional[Dict[str, Any]] = None

@dataclass
class ConsoleLoggingConfig:
    """控制台日志配置"""
    enabled: bool = True

@dataclass
class LoggingConfig:
    """完整日志配置"""
    level: str = "INFO"
    format: str = "[%(levelname)s][%(asctime)s][%(filename)s:%(lineno)d] - %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    file_config: FileLoggingConfig = field(default_factory=FileLoggingConfig)
    console_config: ConsoleLoggingConfig = field(default_factory=ConsoleLoggingConfig)
    modules: Dict[str, LoggingModuleConfig] = field(default_factory=dict)

@dataclass
class DatabaseConfig:
    """数据库配置"""
    url: Optional[str] = None
    db_path: str = "data/quotes.db"
    quotes_table: str = "quotes"
    users_table: str = "users"
    echo: bool = False

    def get_async_url(self) -> str:
        """获取异步连接串，未配置 url 时由 db_path 推导"""
        if self.url:
            return self.url
        return f"sqlite+aiosqlite:///{self.db_path}"

@dataclass
class AuthConfig:
    """令牌校验配置"""
    jwks_uri: str = ""
    audience: Optional[str] = None
    issuer: Optional[str] = None
    algorithms: List[str] = field(default_factory=lambda: ["RS256"])
    claims_namespace: str = ""
    cache_keys: bool = True
    rate_limit: bool = True
    jwks_requests_per_minute: int = 5
    jwks_timeout: float = 10.0
    jwks_cache_lifespan: int = 600

@dataclass
class QuotesConfig:
    """语录业务配置"""
    random_fetch_size: int = 5

@dataclass
class ApiConfig:
    """API配置"""
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 1
    reload: bool = False
    cors_origins: List[str] = field(default_factory=lambda: ["*"])


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(',') if item.strip()]


def _field(section: str, data: Dict[str, Any], key: str, parse: Callable[[Any], T], default: T) -> T:
    """解析单个字段，值非法时记录字段名并回退到该字段的默认值"""
    value = data.get(key)
    if value is None:
        return default
    try:
        return parse(value)
    except (TypeError, ValueError):
        config_logger.error(f"Invalid value for {section}.{key}: {value!r}, using default {default!r}")
        return default


# 环境变量 -> (配置路径, 解析函数)
ENV_OVERRIDES: Dict[str, tuple] = {
    "QUOTES_DATABASE_URL": ("database_config.url", str),
    "QUOTES_DATABASE_PATH": ("database_config.db_path", str),
    "QUOTES_QUOTES_TABLE": ("database_config.quotes_table", str),
    "QUOTES_USERS_TABLE": ("database_config.users_table", str),
    "QUOTES_JWKS_URI": ("auth_config.jwks_uri", str),
    "QUOTES_JWT_AUDIENCE": ("auth_config.audience", str),
    "QUOTES_JWT_ISSUER": ("auth_config.issuer", str),
    "QUOTES_JWT_ALGORITHMS": ("auth_config.algorithms", _parse_list),
    "QUOTES_CLAIMS_NAMESPACE": ("auth_config.claims_namespace", str),
    "QUOTES_JWKS_CACHE": ("auth_config.cache_keys", _parse_bool),
    "QUOTES_JWKS_RATE_LIMIT": ("auth_config.rate_limit", _parse_bool),
    "QUOTES_JWKS_REQUESTS_PER_MINUTE": ("auth_config.jwks_requests_per_minute", int),
    "QUOTES_JWKS_TIMEOUT": ("auth_config.jwks_timeout", float),
    "QUOTES_RANDOM_FETCH_SIZE": ("quotes_config.random_fetch_size", int),
    "QUOTES_API_HOST": ("api_config.host", str),
    "QUOTES_API_PORT": ("api_config.port", int),
    "QUOTES_API_WORKERS": ("api_config.workers", int),
    "QUOTES_LOG_LEVEL": ("logging_config.level", str),
}


# ============================================================================
# 统一配置管理器
# ============================================================================

class UnifiedConfigManager:
    """统一配置管理器 - 整合底层操作和应用层抽象"""

    def __init__(self, config_dir: Optional[str] = None, environ: Optional[Dict[str, str]] = None):
        self._config_dir = Path(config_dir) if config_dir else CONFIG_DIR
        self._environ = environ if environ is not None else os.environ
        self._config_data: Dict[str, Any] = {}

        # 类型化配置缓存
        self._typed_cache: Dict[str, Any] = {}

        # 初始化配置
        self._load_config()

    def _load_config(self) -> None:
        """加载配置文件并应用环境变量覆盖"""
        merged_config = {}
        try:
            config_logger.info(f"Loading configuration from directory: {self._config_dir}")

            if not self._config_dir.is_dir():
                raise ConfigurationError(
                    f"Configuration path is not a directory: {self._config_dir}",
                    ErrorCodes.CONFIG_NOT_FOUND
                )

            # 按文件名排序加载，确保加载顺序一致
            config_files = sorted(self._config_dir.glob('*.json'))
            for config_file in config_files:
                try:
                    with open(config_file, 'r', encoding='utf-8') as f:
                        data = json.load(f)
                        merged_config.update(data)
                    config_logger.debug(f"Loaded and merged: {config_file.name}")
                except json.JSONDecodeError as e:
                    raise ConfigurationError(
                        f"Invalid JSON in configuration file {config_file.name}: {e}",
                        ErrorCodes.CONFIG_INVALID_FORMAT
                    ) from e

            self._config_data = merged_config
            self._apply_env_overrides()
            config_logger.info(f"Configuration loaded and merged from {len(config_files)} files.")
            # 清除类型化缓存
            self._typed_cache.clear()

        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(
                f"Failed to load configuration: {e}",
                ErrorCodes.CONFIG_NOT_FOUND
            ) from e

    def _apply_env_overrides(self) -> None:
        """用环境变量覆盖配置文件中的值"""
        for env_name, (path, parse) in ENV_OVERRIDES.items():
            raw = self._environ.get(env_name)
            if raw is None or raw == "":
                continue
            try:
                self.set_nested(path, parse(raw))
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid value for {env_name}: {raw!r}",
                    ErrorCodes.CONFIG_INVALID_FORMAT
                ) from e
            config_logger.debug(f"Configuration override from environment: {env_name}")

    def reload_config(self) -> None:
        """重新加载配置"""
        config_logger.info("Reloading configuration...")
        self._load_config()

    # ========================================================================
    # 底层访问方法
    # ========================================================================

    def get(self, key: str, default: Optional[T] = None) -> Optional[T]:
        """获取配置值"""
        return self._config_data.get(key, default)

    def get_nested(self, path: str, default: Optional[T] = None) -> Optional[T]:
        """获取嵌套配置值，支持点分隔路径"""
        keys = path.split('.')
        current = self._config_data

        for key in keys:
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default

        return current

    def set_nested(self, path: str, value: Any) -> None:
        """设置嵌套配置值"""
        keys = path.split('.')
        current = self._config_data

        for key in keys[:-1]:
            if key not in current:
                current[key] = {}
            current = current[key]

        current[keys[-1]] = value
        self._typed_cache.pop(keys[0], None)

    def __contains__(self, key: str) -> bool:
        """支持 'in' 操作符"""
        return key in self._config_data

    # ========================================================================
    # 类型安全访问方法
    # ========================================================================

    def _typed(self, section: str, build: Callable[[Dict[str, Any]], T], fallback: Callable[[], T]) -> T:
        """解析并缓存一个配置段，解析失败时回退到默认值"""
        if section not in self._typed_cache:
            try:
                self._typed_cache[section] = build(self.get_nested(section, {}) or {})
            except Exception as e:
                config_logger.error(f"Failed to parse {section}: {e}")
                self._typed_cache[section] = fallback()
        return self._typed_cache[section]

    def get_logging_config(self) -> LoggingConfig:
        """获取日志配置（类型安全）"""
        def build(logging_data: Dict[str, Any]) -> LoggingConfig:
            file_data = logging_data.get('file_config', {})
            console_data = logging_data.get('console_config', {})
            modules = {
                module_name: LoggingModuleConfig(
                    level=module_data.get('level', 'INFO'),
                    enabled=module_data.get('enabled', True)
                )
                for module_name, module_data in logging_data.get('modules', {}).items()
            }
            return LoggingConfig(
                level=logging_data.get('level', 'INFO'),
                file_config=FileLoggingConfig(
                    enabled=file_data.get('enabled', True),
                    directory=file_data.get('directory', 'log'),
                    filename=file_data.get('filename', 'sys.log'),
                    rotation=file_data.get('rotation')
                ),
                console_config=ConsoleLoggingConfig(enabled=console_data.get('enabled', True)),
                modules=modules
            )

        return self._typed('logging_config', build, LoggingConfig)

    def get_database_config(self) -> DatabaseConfig:
        """获取数据库配置（类型安全）"""
        def build(db_data: Dict[str, Any]) -> DatabaseConfig:
            return DatabaseConfig(
                url=db_data.get('url') or None,
                db_path=db_data.get('db_path', 'data/quotes.db'),
                quotes_table=db_data.get('quotes_table', 'quotes'),
                users_table=db_data.get('users_table', 'users'),
                echo=db_data.get('echo', False)
            )

        return self._typed('database_config', build, DatabaseConfig)

    def get_auth_config(self) -> AuthConfig:
        """获取令牌校验配置（类型安全）"""
        def build(auth_data: Dict[str, Any]) -> AuthConfig:
            algorithms = auth_data.get('algorithms') or ["RS256"]
            if isinstance(algorithms, str):
                algorithms = _parse_list(algorithms)
            return AuthConfig(
                jwks_uri=auth_data.get('jwks_uri', ''),
                audience=auth_data.get('audience') or None,
                issuer=auth_data.get('issuer') or None,
                algorithms=algorithms,
                claims_namespace=auth_data.get('claims_namespace', ''),
                cache_keys=auth_data.get('cache_keys', True),
                rate_limit=auth_data.get('rate_limit', True),
                jwks_requests_per_minute=_field('auth_config', auth_data, 'jwks_requests_per_minute', int, 5),
                jwks_timeout=_field('auth_config', auth_data, 'jwks_timeout', float, 10.0),
                jwks_cache_lifespan=_field('auth_config', auth_data, 'jwks_cache_lifespan', int, 600)
            )

        return self._typed('auth_config', build, AuthConfig)

    def get_quotes_config(self) -> QuotesConfig:
        """获取语录业务配置（类型安全）"""
        def build(quotes_data: Dict[str, Any]) -> QuotesConfig:
            size = _field('quotes_config', quotes_data, 'random_fetch_size', int, 5)
            return QuotesConfig(random_fetch_size=size if size > 0 else 5)

        return self._typed('quotes_config', build, QuotesConfig)

    def get_api_config(self) -> ApiConfig:
        """获取API配置（类型安全）"""
        def build(api_data: Dict[str, Any]) -> ApiConfig:
            return ApiConfig(
                host=api_data.get('host', '0.0.0.0'),
                port=_field('api_config', api_data, 'port', int, 8000),
                workers=_field('api_config', api_data, 'workers', int, 1),
                reload=api_data.get('reload', False),
                cors_origins=api_data.get('cors_origins', ['*'])
            )

        return self._typed('api_config', build, ApiConfig)

    # ========================================================================
    # 便捷方法
    # ========================================================================

    def to_dict(self) -> Dict[str, Any]:
        """返回配置数据的字典副本"""
        return self._config_data.copy()

    def update_from_dict(self, config_dict: Dict[str, Any]) -> None:
        """从字典更新配置"""
        self._config_data.update(config_dict)
        self._typed_cache.clear()  # 清除缓存
        config_logger.info("Configuration updated from dict")


# ============================================================================
# 全局单例实例
# ============================================================================

# 创建统一配置管理器实例
config_manager = UnifiedConfigManager()
