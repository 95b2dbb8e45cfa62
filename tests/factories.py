"""
Test data factories for Quotes API tests
Provides sample quotes, signed tokens and a static key set
"""

import json
import time
from typing import List, Dict, Any

import jwt
from faker import Faker
from jwt.algorithms import RSAAlgorithm
from jwt.exceptions import PyJWKClientError

from database.models import QuoteDB, generate_object_id

# Initialize faker
fake = Faker()

TEST_KID = "test-key"
TEST_AUDIENCE = "https://quotes.test/api"
TEST_ISSUER = "https://auth.quotes.test/"
TEST_NAMESPACE = "https://quotes.test/"

ALICE = "auth0|alice"
BOB = "auth0|bob"

SAMPLE_QUOTES = [
    {"id": "5f1a0c2e9b1d4a0012a0b001", "quote": "Stay hungry, stay foolish.", "author": "Steve Jobs",
     "tags": ["life", "inspiration"]},
    {"id": "5f1a0c2e9b1d4a0012a0b002", "quote": "Simplicity is the ultimate sophistication.",
     "author": "Leonardo da Vinci", "tags": ["design"]},
    {"id": "5f1a0c2e9b1d4a0012a0b003", "quote": "The only way out is through.", "author": "Robert Frost",
     "tags": []},
    {"id": "5f1a0c2e9b1d4a0012a0b004", "quote": "Well begun is half done.", "author": "Aristotle",
     "tags": ["work"]},
]

QUOTE_IDS = [quote["id"] for quote in SAMPLE_QUOTES]


class QuoteFactory:
    """Factory for creating test quote data"""

    @staticmethod
    def create_quote(author: str = None, tags: List[str] = None) -> Dict[str, Any]:
        return {
            'id': generate_object_id(),
            'quote': fake.sentence(nb_words=10),
            'author': author or fake.name(),
            'tags': tags if tags is not None else fake.words(nb=2)
        }

    @staticmethod
    def create_quotes(count: int = 10) -> List[Dict[str, Any]]:
        return [QuoteFactory.create_quote() for _ in range(count)]


class StaticKeySetClient:
    """固定公钥集，替代远程 JWKS 端点"""

    def __init__(self, public_key, kid: str = TEST_KID):
        jwk_data = json.loads(RSAAlgorithm.to_jwk(public_key))
        jwk_data.update({"kid": kid, "alg": "RS256", "use": "sig"})
        self.kid = kid
        self.jwk_data = jwk_data
        self.signing_key = jwt.PyJWK(jwk_data)
        self.lookups = 0

    def get_signing_key_from_jwt(self, token: str):
        self.lookups += 1
        header = jwt.get_unverified_header(token)
        if header.get("kid") != self.kid:
            raise PyJWKClientError(f'Unable to find a signing key that matches: "{header.get("kid")}"')
        return self.signing_key


class TokenFactory:
    """用本地私钥签发测试令牌"""

    def __init__(self, private_key, kid: str = TEST_KID):
        self.private_key = private_key
        self.kid = kid

    def issue(self, sub: str = ALICE, username: str = "alice", expires_in: int = 300,
              audience: str = TEST_AUDIENCE, issuer: str = TEST_ISSUER, kid: str = None,
              signing_key=None, extra_claims: Dict[str, Any] = None) -> str:
        now = int(time.time())
        claims = {"aud": audience, "iss": issuer, "iat": now, "exp": now + expires_in}
        if sub is not None:
            claims["sub"] = sub
        if username is not None:
            claims[f"{TEST_NAMESPACE}username"] = username
        claims.update(extra_claims or {})
        return jwt.encode(claims, signing_key or self.private_key, algorithm="RS256",
                          headers={"kid": kid or self.kid})

    def auth_header(self, **kwargs) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.issue(**kwargs)}"}


def seed_quotes(db, quotes: List[Dict[str, Any]] = None):
    """通过同步会话写入语录"""
    with db.get_session() as session:
        for quote in quotes or SAMPLE_QUOTES:
            session.add(QuoteDB(**quote))
        session.commit()
