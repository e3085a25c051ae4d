"""Test configuration and fixtures."""

import os

os.environ.setdefault("ENVIRONMENT", "test")

import logfire  # noqa: E402
import pytest  # noqa: E402

from studyhall.domain.service import TokenCipherService  # noqa: E402
from studyhall.util.cipher import FernetCipher  # noqa: E402

# Spans and logs stay in-process during tests
logfire.configure(send_to_logfire=False, console=False)

TEST_TOKEN_SECRET = "test-token-encryption-secret"


@pytest.fixture
def token_cipher() -> TokenCipherService:
    """Cipher service keyed by a fixed test secret."""
    return TokenCipherService(FernetCipher(TEST_TOKEN_SECRET))
