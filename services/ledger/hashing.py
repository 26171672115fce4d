"""Content hashing, contract IDs and UTC timestamps."""
import hashlib
import re
import secrets
import time
from datetime import datetime, timezone
from typing import Optional

CONTRACT_ID_PREFIX = "trans_"
CONTRACT_ID_HEX_CHARS = 6

TIMESTAMP_PATTERN = r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$"
_TIMESTAMP_RE = re.compile(TIMESTAMP_PATTERN)


def sha256_hex(data: str | bytes) -> str:
    """Return the lowercase hex SHA-256 digest of data (str is UTF-8 encoded)."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def generate_contract_id(content: str, nonce: Optional[int] = None) -> str:
    """
    Generate a contract ID from content plus a wall-clock nonce.

    The nonce defaults to the current time in nanoseconds, so identical
    content yields a different ID on every call. Only six hex characters are
    kept: collisions are possible and tolerated.
    """
    if nonce is None:
        nonce = time.time_ns()
    digest = sha256_hex(f"{content}_{nonce}")
    return f"{CONTRACT_ID_PREFIX}{digest[:CONTRACT_ID_HEX_CHARS]}"


def generate_trace_id() -> str:
    """Generate a short trace ID for correlating log lines of one request."""
    return f"{time.time_ns() // 1_000_000:x}_{secrets.token_hex(4)}"


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """Format an instant as YYYY-MM-DDTHH:MM:SS.mmmZ in UTC."""
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def is_valid_timestamp(value: str) -> bool:
    """Check that value is a real UTC instant in the fixed timestamp format."""
    if not isinstance(value, str) or not _TIMESTAMP_RE.match(value):
        return False
    try:
        datetime.strptime(value, "%Y-%m-%dT%H:%M:%S.%fZ")
    except ValueError:
        return False
    return True
