"""
Request dependencies for the quotes API.
Resolves the application services and gates routes on bearer authentication.
"""

from fastapi import Depends, Request

from auth import AuthOutcome, AuthStatus, ClaimSet, ClaimVerifier, extract_bearer_token
from quote_manager import QuoteManager
from utils import AuthenticationError, ErrorCodes


def get_quote_manager(request: Request) -> QuoteManager:
    return request.app.state.quote_manager


def get_verifier(request: Request) -> ClaimVerifier:
    return request.app.state.verifier


async def require_claims(request: Request, verifier: ClaimVerifier = Depends(get_verifier)) -> ClaimSet:
    """必须认证的路由：无令牌或令牌无效均返回 401"""
    token = extract_bearer_token(request.headers.get("authorization"))
    return await verifier.verify_mandatory(token)


async def optional_auth(request: Request, verifier: ClaimVerifier = Depends(get_verifier)) -> AuthOutcome:
    """可选认证的路由：无令牌为匿名，令牌无效仍返回 401"""
    token = extract_bearer_token(request.headers.get("authorization"))
    outcome = await verifier.verify_optional(token)

    if outcome.status == AuthStatus.INVALID:
        raise AuthenticationError(outcome.reason or "Invalid bearer token", ErrorCodes.AUTH_INVALID_TOKEN)

    return outcome
