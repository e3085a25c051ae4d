"""Symmetric encryption for provider tokens at rest."""

from base64 import urlsafe_b64encode
from hashlib import sha256

from cryptography.fernet import Fernet, InvalidToken

from studyhall.util.error import CipherError

_KEY_SCOPE = "studyhall:provider-tokens"


def derive_fernet_key(secret: str) -> bytes:
    """Derive a Fernet key from a server-side secret.

    Args:
        secret: Configured encryption secret of any length

    Returns:
        32-byte urlsafe base64 key
    """
    digest = sha256(f"{_KEY_SCOPE}:{secret}".encode("utf-8")).digest()
    return urlsafe_b64encode(digest)


class FernetCipher:
    """Fernet (AES-128-CBC + HMAC-SHA256) string cipher."""

    def __init__(self, secret: str) -> None:
        """Initialize cipher.

        Args:
            secret: Server-side secret, never derived from request data
        """
        self._fernet = Fernet(derive_fernet_key(secret))

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a string into a urlsafe token."""
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")

    def decrypt(self, ciphertext: str) -> str:
        """Decrypt a token produced by ``encrypt``.

        Raises:
            CipherError: If the ciphertext is corrupted or the key is wrong
        """
        try:
            return self._fernet.decrypt(ciphertext.encode("ascii")).decode("utf-8")
        except (InvalidToken, UnicodeError) as e:
            raise CipherError("Ciphertext could not be decrypted") from e
