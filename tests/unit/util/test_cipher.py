"""Unit tests for token encryption at rest."""

import pytest

from studyhall.domain.error import DecryptionError
from studyhall.domain.service import TokenCipherService
from studyhall.domain.value import EncryptedToken
from studyhall.util.cipher import FernetCipher
from studyhall.util.error import CipherError

TOKEN_SHAPES = [
    pytest.param("", id="empty"),
    pytest.param("x" * 4096, id="long"),
    pytest.param("токен-ñ-🔑", id="non-ascii"),
    pytest.param("eyJhbGciOiJIUzI1NiJ9.eyJzdWIiOiIxIn0.sig", id="jwt-shaped"),
]


class TestFernetCipher:
    """Tests for FernetCipher."""

    def test_ciphertext_does_not_contain_plaintext(self):
        cipher = FernetCipher("secret")

        ciphertext = cipher.encrypt("ya29.access-token")

        assert "ya29.access-token" not in ciphertext
        assert cipher.decrypt(ciphertext) == "ya29.access-token"

    @pytest.mark.parametrize("plaintext", TOKEN_SHAPES)
    def test_round_trip(self, plaintext):
        cipher = FernetCipher("secret")

        ciphertext = cipher.encrypt(plaintext)

        assert ciphertext.isascii()
        assert cipher.decrypt(ciphertext) == plaintext
        if plaintext:
            assert plaintext not in ciphertext

    def test_same_plaintext_encrypts_differently(self):
        cipher = FernetCipher("secret")
        assert cipher.encrypt("token") != cipher.encrypt("token")

    def test_wrong_key_raises_cipher_error(self):
        ciphertext = FernetCipher("secret-a").encrypt("token")

        with pytest.raises(CipherError):
            FernetCipher("secret-b").decrypt(ciphertext)


class TestTokenCipherService:
    """Tests for TokenCipherService."""

    def test_encrypt_optional_passes_none_through(self, token_cipher):
        assert token_cipher.encrypt_optional(None) is None

    @pytest.mark.parametrize("plaintext", TOKEN_SHAPES)
    def test_round_trip(self, token_cipher, plaintext):
        stored = token_cipher.encrypt(plaintext)

        assert token_cipher.decrypt(stored) == plaintext

    def test_corrupted_ciphertext_raises_decryption_error(self, token_cipher):
        with pytest.raises(DecryptionError):
            token_cipher.decrypt(EncryptedToken("gAAAA-corrupted"))

    def test_key_rotation_makes_tokens_unreadable(self, token_cipher):
        stored = token_cipher.encrypt("refresh-token")
        rotated = TokenCipherService(FernetCipher("a-new-secret"))

        with pytest.raises(DecryptionError):
            rotated.decrypt(stored)
