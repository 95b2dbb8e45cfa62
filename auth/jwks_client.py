"""
JWKS client with cached key set and rate-limited refresh.
"""

from typing import Any

from jwt import PyJWKClient
from jwt.exceptions import PyJWKClientConnectionError

from utils import auth_logger, RateLimiter, AuthConfig


class JWKSRateLimitError(PyJWKClientConnectionError):
    """公钥集刷新次数超过限制"""
    pass


class RateLimitedJWKClient(PyJWKClient):
    """带刷新限流的 PyJWKClient

    公钥集缓存命中时不发请求；kid 未命中会触发刷新，刷新次数受
    requests_per_minute 限制，超过后直接失败而不是继续请求。
    """

    def __init__(self, uri: str, cache_keys: bool = True, rate_limit: bool = True,
                 requests_per_minute: int = 5, timeout: float = 10.0, lifespan: int = 600):
        super().__init__(
            uri,
            cache_keys=cache_keys,
            cache_jwk_set=cache_keys,
            lifespan=lifespan,
            timeout=timeout,
        )
        self.rate_limiter = RateLimiter(max_requests=requests_per_minute, window_seconds=60) if rate_limit else None

    @classmethod
    def from_config(cls, auth_config: AuthConfig) -> "RateLimitedJWKClient":
        return cls(
            auth_config.jwks_uri,
            cache_keys=auth_config.cache_keys,
            rate_limit=auth_config.rate_limit,
            requests_per_minute=auth_config.jwks_requests_per_minute,
            timeout=auth_config.jwks_timeout,
            lifespan=auth_config.jwks_cache_lifespan,
        )

    def fetch_data(self) -> Any:
        if self.rate_limiter is not None and not self.rate_limiter.is_allowed(self.uri):
            auth_logger.warning(f"[Auth] JWKS refresh rate limit exceeded for {self.uri}")
            raise JWKSRateLimitError(
                f"Too many requests to the JWKS endpoint (limit {self.rate_limiter.max_requests}/min)"
            )

        auth_logger.info(f"[Auth] Fetching JWKS from {self.uri}")
        return super().fetch_data()
