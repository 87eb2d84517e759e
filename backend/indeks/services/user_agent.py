"""User-agent classification into device type, browser and OS."""

from __future__ import annotations

import re
from dataclasses import dataclass

UNKNOWN = "Unknown"

_TABLET_PATTERN = re.compile(r"ipad|tablet|playbook|silk", re.IGNORECASE)
_MOBILE_PATTERN = re.compile(
    r"mobile|android|iphone|ipod|blackberry|opera mini|iemobile", re.IGNORECASE
)
_IOS_DEVICE_TOKENS = ("iphone", "ipad", "ipod")

# Priority order matters: Chromium Edge also says "chrome", Chrome also says "safari".
_BROWSER_TOKENS = (
    ("Firefox", ("firefox",)),
    ("Edge", ("edg",)),
    ("Chrome", ("chrome",)),
    ("Safari", ("safari",)),
    ("Opera", ("opera", "opr")),
)


@dataclass(frozen=True)
class UserAgentInfo:
    browser: str
    os: str
    device_type: str  # desktop | mobile | tablet

    @property
    def device_key(self) -> str:
        return f"{self.device_type}|{self.browser}|{self.os}"


def _device_type(ua: str) -> str:
    if _TABLET_PATTERN.search(ua):
        return "tablet"
    if _MOBILE_PATTERN.search(ua):
        return "mobile"
    return "desktop"


def _browser(ua: str) -> str:
    for name, tokens in _BROWSER_TOKENS:
        if any(token in ua for token in tokens):
            return name
    return UNKNOWN


def _os(ua: str) -> str:
    is_ios_device = any(token in ua for token in _IOS_DEVICE_TOKENS)
    if "windows" in ua:
        return "Windows"
    # iOS advertises "like Mac OS X"; the mac token only counts without an iOS device marker.
    # Android advertises "Linux" and stays in the Linux bucket.
    if "mac" in ua and not is_ios_device:
        return "macOS"
    if "linux" in ua:
        return "Linux"
    if "android" in ua:
        return "Android"
    if is_ios_device:
        return "iOS"
    return UNKNOWN


def classify_user_agent(user_agent: str | None) -> UserAgentInfo:
    """Classify a raw user-agent string. Never raises."""
    ua = str(user_agent or "").lower()
    if not ua:
        return UserAgentInfo(browser=UNKNOWN, os=UNKNOWN, device_type="desktop")
    return UserAgentInfo(browser=_browser(ua), os=_os(ua), device_type=_device_type(ua))
