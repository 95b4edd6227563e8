"""User-agent parsing for click analytics."""

from typing import Optional, NamedTuple

from user_agents import parse as parse_user_agent


class DeviceInfo(NamedTuple):
    """Device details derived from a user-agent string."""

    device_type: Optional[str] = None
    browser: Optional[str] = None
    os: Optional[str] = None


def detect_device(user_agent: Optional[str]) -> DeviceInfo:
    """Derive device type, browser and OS from a user-agent string.

    Args:
        user_agent: Raw ``User-Agent`` header value.

    Returns:
        DeviceInfo; all fields are None when no user agent was sent.
    """
    if not user_agent:
        return DeviceInfo()

    ua = parse_user_agent(user_agent)

    if ua.is_bot:
        device_type = "Bot"
    elif ua.is_tablet:
        device_type = "Tablet"
    elif ua.is_mobile:
        device_type = "Mobile"
    elif ua.is_pc:
        device_type = "Desktop"
    else:
        device_type = "Other"

    return DeviceInfo(
        device_type=device_type,
        browser=ua.browser.family[:50] if ua.browser.family else None,
        os=ua.os.family[:50] if ua.os.family else None,
    )
