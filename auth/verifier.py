"""
Bearer token verification.
Produces a verified claim set, or signals a missing/invalid credential.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

import jwt
from jwt.exceptions import InvalidTokenError, PyJWKClientError, PyJWKClientConnectionError
from starlette.concurrency import run_in_threadpool

from utils import (
    auth_logger, AuthConfig, AuthenticationError, KeySetUnavailableError,
    ConfigurationError, ErrorCodes
)

from .jwks_client import RateLimitedJWKClient

DISPLAY_NAME_CLAIM = "username"


class AuthStatus(str, Enum):
    """认证结果状态"""
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"
    INVALID = "invalid"


@dataclass
class ClaimSet:
    """已验证的声明集"""
    subject: str
    display_name: Optional[str] = None
    claims: Dict[str, Any] = field(default_factory=dict)


@dataclass
class AuthOutcome:
    """可选认证的结果"""
    status: AuthStatus
    claims: Optional[ClaimSet] = None
    reason: Optional[str] = None

    @property
    def subject(self) -> Optional[str]:
        return self.claims.subject if self.claims else None

    @classmethod
    def anonymous(cls) -> "AuthOutcome":
        return cls(AuthStatus.ANONYMOUS)

    @classmethod
    def authenticated(cls, claims: ClaimSet) -> "AuthOutcome":
        return cls(AuthStatus.AUTHENTICATED, claims=claims)

    @classmethod
    def invalid(cls, reason: str) -> "AuthOutcome":
        return cls(AuthStatus.INVALID, reason=reason)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """从 Authorization 头中取出令牌

    头不存在返回 None；存在但不是 Bearer 凭证时返回空串，视为无效令牌。
    """
    if authorization is None:
        return None

    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return ""
    return token.strip()


class ClaimVerifier:
    """验证 JWT 签名、有效期、受众与签发者"""

    def __init__(self, jwks_client, audience: Optional[str] = None, issuer: Optional[str] = None,
                 algorithms: Optional[List[str]] = None, claims_namespace: str = "", leeway: int = 0):
        self.jwks_client = jwks_client
        self.audience = audience
        self.issuer = issuer
        self.algorithms = algorithms or ["RS256"]
        self.claims_namespace = claims_namespace or ""
        self.leeway = leeway

    @classmethod
    def from_config(cls, auth_config: AuthConfig) -> "ClaimVerifier":
        if not auth_config.jwks_uri:
            raise ConfigurationError(
                "auth_config.jwks_uri is required to verify bearer tokens",
                ErrorCodes.CONFIG_MISSING_KEY
            )

        return cls(
            RateLimitedJWKClient.from_config(auth_config),
            audience=auth_config.audience,
            issuer=auth_config.issuer,
            algorithms=auth_config.algorithms,
            claims_namespace=auth_config.claims_namespace,
        )

    @property
    def display_name_claim(self) -> str:
        return f"{self.claims_namespace}{DISPLAY_NAME_CLAIM}"

    def decode(self, token: str) -> ClaimSet:
        """同步校验令牌（可能触发公钥集网络请求）"""
        if not token:
            raise AuthenticationError("Missing bearer token", ErrorCodes.AUTH_MISSING_TOKEN)

        try:
            signing_key = self.jwks_client.get_signing_key_from_jwt(token)
            payload = jwt.decode(
                token,
                signing_key.key,
                algorithms=self.algorithms,
                audience=self.audience,
                issuer=self.issuer,
                leeway=self.leeway,
                options={
                    "require": ["sub"],
                    "verify_aud": self.audience is not None,
                    "verify_iss": self.issuer is not None,
                },
            )
        except PyJWKClientConnectionError as e:
            auth_logger.error(f"[Auth] Key set unavailable: {e}")
            raise KeySetUnavailableError(str(e), ErrorCodes.AUTH_KEYSET_UNAVAILABLE) from e
        except (PyJWKClientError, InvalidTokenError) as e:
            auth_logger.info(f"[Auth] Rejected token: {e}")
            raise AuthenticationError(f"Invalid bearer token: {e}", ErrorCodes.AUTH_INVALID_TOKEN) from e

        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            raise AuthenticationError("Token subject is missing", ErrorCodes.AUTH_INVALID_TOKEN)

        display_name = payload.get(self.display_name_claim)
        return ClaimSet(
            subject=subject,
            display_name=display_name if isinstance(display_name, str) and display_name else None,
            claims=payload,
        )

    async def verify_mandatory(self, token: Optional[str]) -> ClaimSet:
        """必须认证：缺少或无效令牌都抛出 AuthenticationError"""
        if token is None:
            raise AuthenticationError("Missing bearer token", ErrorCodes.AUTH_MISSING_TOKEN)
        return await run_in_threadpool(self.decode, token)

    async def verify_optional(self, token: Optional[str]) -> AuthOutcome:
        """可选认证：无令牌为匿名；有令牌但无效为 INVALID"""
        if token is None:
            return AuthOutcome.anonymous()

        try:
            claims = await run_in_threadpool(self.decode, token)
        except AuthenticationError as e:
            return AuthOutcome.invalid(e.message)

        return AuthOutcome.authenticated(claims)
