"""
pytest configuration and fixtures for Quotes API tests
"""

import sys
from pathlib import Path

import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from auth import ClaimVerifier
from database import DatabaseManager, QuoteStore
from quote_manager import QuoteManager
from tests.factories import (
    SAMPLE_QUOTES, TEST_AUDIENCE, TEST_ISSUER, TEST_NAMESPACE,
    StaticKeySetClient, TokenFactory
)


@pytest.fixture(scope="session")
def rsa_private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def tokens(rsa_private_key):
    """Token factory fixture"""
    return TokenFactory(rsa_private_key)


@pytest.fixture
def key_set_client(rsa_private_key):
    return StaticKeySetClient(rsa_private_key.public_key())


@pytest.fixture
def verifier(key_set_client):
    """Claim verifier backed by the static key set"""
    return ClaimVerifier(
        key_set_client,
        audience=TEST_AUDIENCE,
        issuer=TEST_ISSUER,
        algorithms=["RS256"],
        claims_namespace=TEST_NAMESPACE,
    )


@pytest.fixture
def db_url(tmp_path):
    """File-backed SQLite database per test"""
    return f"sqlite+aiosqlite:///{tmp_path / 'quotes.db'}"


@pytest.fixture
async def quote_store(db_url):
    """Initialized quote store seeded with sample quotes"""
    store = QuoteStore(DatabaseManager(db_url, echo=False))
    await store.initialize()
    await store.insert_quotes(SAMPLE_QUOTES)

    yield store

    await store.close()


@pytest.fixture
async def quote_manager(quote_store):
    return QuoteManager(quote_store, random_fetch_size=5)


# Pytest configuration
def pytest_configure(config):
    """Configure pytest"""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
