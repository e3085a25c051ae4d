"""Token cipher domain service."""

from studyhall.domain.error import DecryptionError
from studyhall.domain.value import EncryptedToken
from studyhall.util.cipher import FernetCipher
from studyhall.util.error import CipherError

from .base import Service


class TokenCipherService(Service):
    """Encrypts provider tokens for storage and decrypts them for use.

    Plaintext tokens exist only in memory during exchange, refresh and use.
    """

    def __init__(self, cipher: FernetCipher) -> None:
        """Initialize cipher service.

        Args:
            cipher: Cipher keyed by the server-side token encryption secret
        """
        self.cipher = cipher

    def encrypt(self, plaintext: str) -> EncryptedToken:
        """Encrypt a provider token."""
        return EncryptedToken(self.cipher.encrypt(plaintext))

    def encrypt_optional(self, plaintext: str | None) -> EncryptedToken | None:
        """Encrypt a token that the provider may not have issued."""
        if plaintext is None:
            return None
        return self.encrypt(plaintext)

    def decrypt(self, ciphertext: EncryptedToken) -> str:
        """Decrypt a stored provider token.

        Raises:
            DecryptionError: If the ciphertext is corrupted or was produced
                with a different key
        """
        try:
            return self.cipher.decrypt(ciphertext.root)
        except CipherError as e:
            raise DecryptionError("Stored provider token could not be decrypted") from e
