"""
Authentication module for the quotes API.
Verifies third-party bearer tokens against a remote JSON Web Key Set.
"""

from .jwks_client import RateLimitedJWKClient, JWKSRateLimitError
from .verifier import (
    AuthStatus,
    AuthOutcome,
    ClaimSet,
    ClaimVerifier,
    extract_bearer_token
)

__all__ = [
    'RateLimitedJWKClient',
    'JWKSRateLimitError',
    'AuthStatus',
    'AuthOutcome',
    'ClaimSet',
    'ClaimVerifier',
    'extract_bearer_token'
]
