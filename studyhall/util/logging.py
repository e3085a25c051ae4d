"""Logging configuration for the application."""

import logging
import re
import sys

from studyhall.config import Settings

# Query-string and form fields that carry OAuth secrets
_SECRET_FIELDS = re.compile(
    r"(?P<key>access_token|refresh_token|id_token|code_verifier|client_secret|code)"
    r"=(?P<value>[^&\s\"']+)"
)


class RedactSecretsFilter(logging.Filter):
    """Mask OAuth secrets that end up in formatted log messages.

    httpx and uvicorn log full URLs; authorization codes and tokens must not
    reach log sinks.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = _SECRET_FIELDS.sub(r"\g<key>=[REDACTED]", message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def setup_logging(settings: Settings) -> None:
    """Configure stdlib logging for the application.

    Args:
        settings: Application settings
    """
    if settings.debug:
        level = logging.DEBUG
    elif settings.environment == "production":
        level = logging.WARNING
    else:
        level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RedactSecretsFilter())

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[handler],
        force=True,
    )

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("studyhall").setLevel(level)

    get_logger(__name__).info(
        "Logging configured: environment=%s, level=%s",
        settings.environment,
        logging.getLevelName(level),
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
