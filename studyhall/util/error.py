"""Utility layer errors."""


class UtilError(Exception):
    """Base utility error."""

    pass


class ConfigurationError(UtilError):
    """Configuration error."""

    pass


class JWTError(UtilError):
    """JWT-related error."""

    pass


class CipherError(UtilError):
    """Ciphertext could not be decrypted with the configured key."""

    pass
