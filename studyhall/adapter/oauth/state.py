"""OAuth ``state`` parameter generation and freshness checks."""

import secrets
import time
from datetime import timedelta
from hashlib import sha256

DEFAULT_STATE_MAX_AGE = timedelta(minutes=10)


def generate_secure_state(account_id: str | None = None) -> str:
    """Generate a CSRF state value.

    Format: ``<unix-ms>.<32 hex chars>.<account fingerprint>``. The
    fingerprint is the first 8 hex chars of sha256(account_id), empty for
    anonymous flows.

    Args:
        account_id: Authenticated account starting the flow, if any

    Returns:
        State string
    """
    timestamp = str(int(time.time() * 1000))
    random_part = secrets.token_hex(16)
    account_part = (
        sha256(account_id.encode("utf-8")).hexdigest()[:8] if account_id else ""
    )
    return f"{timestamp}.{random_part}.{account_part}"


def validate_state(
    state: str,
    max_age: timedelta = DEFAULT_STATE_MAX_AGE,
    now_ms: int | None = None,
) -> bool:
    """Check that a generated state is well-formed and not too old.

    Args:
        state: State value from the callback
        max_age: Maximum accepted age
        now_ms: Current time in unix milliseconds (defaults to wall clock)

    Returns:
        True if the state carries a timestamp within ``max_age``
    """
    if not state:
        return False

    parts = state.split(".")
    if len(parts) < 2:
        return False

    try:
        issued_ms = int(parts[0])
    except ValueError:
        return False

    current_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    age_ms = current_ms - issued_ms
    return 0 <= age_ms <= max_age.total_seconds() * 1000
