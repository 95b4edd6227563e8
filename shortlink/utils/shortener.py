"""URL shortening utilities module.

This module handles the generation and validation of short codes and of the
URLs they point at.
"""

import random
import string
import re
from datetime import datetime, timezone
from typing import Optional, Union
from urllib.parse import urlparse


# Characters allowed in short codes
ALPHABET = string.ascii_letters + string.digits

SHORT_CODE_PATTERN = re.compile(r"[A-Za-z0-9]{6,8}")

ALLOWED_SCHEMES = ("http", "https")

# Top-level paths served by the app itself
RESERVED_CODES = frozenset({"health", "healthz"})

_rng = random.SystemRandom()


def generate_short_code(length: int = 6) -> str:
    """Generate a random short code.

    Args:
        length: Length of the generated code.

    Returns:
        Random short code string, uniform over the 62 alphanumerics.
    """
    return "".join(_rng.choices(ALPHABET, k=length))


def validate_short_code(code: Optional[str]) -> bool:
    """Validate short code format.

    Args:
        code: Short code to validate.

    Returns:
        True if valid, False otherwise.
    """
    if not code:
        return False
    return SHORT_CODE_PATTERN.fullmatch(code) is not None


def is_reserved_code(code: str) -> bool:
    """Check whether a code would be shadowed by one of the app's own routes."""
    return code.lower() in RESERVED_CODES


def validate_url(url: Optional[str]) -> bool:
    """Check that a URL is absolute with an http or https scheme.

    Args:
        url: URL to check.

    Returns:
        True if valid, False otherwise.
    """
    if not url or not isinstance(url, str):
        return False
    if any(c.isspace() for c in url):
        return False
    try:
        parsed = urlparse(url)
        # Accessing the port raises on garbage such as "http://host:abc"
        parsed.port
    except ValueError:
        return False
    return parsed.scheme in ALLOWED_SCHEMES and bool(parsed.hostname)


def is_url_expired(
    expires_at: Optional[Union[str, datetime]], now: Optional[datetime] = None
) -> bool:
    """Check if a link has expired.

    Args:
        expires_at: Expiration timestamp, as stored or as a datetime.
        now: Reference time, defaults to the current UTC time.

    Returns:
        True if expired, False otherwise.
    """
    if not expires_at:
        return False
    if isinstance(expires_at, str):
        expires_at = datetime.fromisoformat(expires_at.replace("Z", "+00:00"))
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return now > expires_at


def create_short_url(base_url: str, short_code: str) -> str:
    """Create full short URL from base URL and short code.

    Args:
        base_url: Base URL of the service.
        short_code: Short code.

    Returns:
        Full short URL string.
    """
    return f"{base_url.rstrip('/')}/{short_code}"
