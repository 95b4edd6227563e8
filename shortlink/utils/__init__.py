"""Utils package for the shortlink service."""

from .shortener import (
    ALPHABET,
    generate_short_code,
    validate_short_code,
    is_reserved_code,
    validate_url,
    create_short_url,
    is_url_expired,
)
from .useragent import DeviceInfo, detect_device

__all__ = [
    "ALPHABET",
    "generate_short_code",
    "validate_short_code",
    "is_reserved_code",
    "validate_url",
    "create_short_url",
    "is_url_expired",
    "DeviceInfo",
    "detect_device",
]
