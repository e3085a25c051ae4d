"""PKCE (Proof Key for Code Exchange) utilities for OAuth security."""

import hmac
import re
import secrets
from base64 import urlsafe_b64encode
from hashlib import sha256

from studyhall.domain.value import PKCEChallenge

_VERIFIER_PATTERN = re.compile(r"^[A-Za-z0-9_-]{43,128}$")


def _s256(verifier: str) -> str:
    digest = sha256(verifier.encode("ascii")).digest()
    return urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def generate_pkce_challenge() -> PKCEChallenge:
    """Generate a PKCE verifier and its S256 challenge.

    The verifier is 32 random bytes, base64url encoded without padding
    (43 characters). The challenge is sent with the authorization request,
    the verifier with the token exchange.

    Returns:
        PKCE challenge with method fixed to "S256"
    """
    verifier = urlsafe_b64encode(secrets.token_bytes(32)).rstrip(b"=").decode("ascii")
    return PKCEChallenge(code_verifier=verifier, code_challenge=_s256(verifier))


def verify_pkce_pair(code_verifier: str, code_challenge: str) -> bool:
    """Check that a verifier is well-formed and matches a challenge.

    Args:
        code_verifier: Candidate verifier (43-128 base64url characters)
        code_challenge: Expected S256 challenge

    Returns:
        True if the verifier hashes to the challenge
    """
    if not code_verifier or not code_challenge:
        return False
    if not _VERIFIER_PATTERN.match(code_verifier):
        return False
    return hmac.compare_digest(_s256(code_verifier), code_challenge)
