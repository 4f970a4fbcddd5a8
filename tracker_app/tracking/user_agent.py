"""
User-agent classification.

Parsing is done by the user-agents library (ua-parser regexes); this module
only folds its families onto the labels the reports use ("Chrome" for
Chrome Mobile, "macOS" for Mac OS X, ...) and spells out Windows NT
versions as marketing names.
"""

import re
from typing import Optional, Tuple

from pydantic import BaseModel
from user_agents import parse

UNKNOWN = "unknown"
OTHER_FAMILY = "Other"

# Link-preview fetchers that ua-parser does not always tag as spiders
_EXTRA_BOT_RE = re.compile(r"bot|crawler|spider|facebookexternalhit|slurp", re.IGNORECASE)

WINDOWS_VERSIONS = {
    "10.0": "10/11",
    "6.3": "8.1",
    "6.2": "8",
    "6.1": "7",
    "6.0": "Vista",
    "5.1": "XP",
}

_WINDOWS_NT_RE = re.compile(r"windows nt (\d+\.\d+)", re.IGNORECASE)

BROWSER_LABELS = {
    "Chrome Mobile": "Chrome",
    "Chrome Mobile iOS": "Chrome",
    "Chrome Mobile WebView": "Chrome",
    "Edge Mobile": "Edge",
    "Opera Mobile": "Opera",
    "Opera Mini": "Opera",
    "Mobile Safari": "Safari",
    "Mobile Safari UI/WKWebView": "Safari",
    "Firefox Mobile": "Firefox",
    "Firefox iOS": "Firefox",
    "IE": "Internet Explorer",
    "IE Mobile": "Internet Explorer",
}

PLATFORM_LABELS = {
    "Mac OS X": "macOS",
    "Ubuntu": "Linux",
    "Debian": "Linux",
    "Fedora": "Linux",
    "Linux Mint": "Linux",
    "Arch Linux": "Linux",
}


class UserAgentInfo(BaseModel):
    device: str  # "mobile" | "tablet" | "desktop" | "unknown"
    is_mobile: bool
    platform: str
    os_version: Optional[str] = None
    browser: str
    browser_version: Optional[str] = None
    is_bot: bool


def _major_minor(version_string: str) -> Optional[str]:
    if not version_string:
        return None
    return ".".join(version_string.split(".")[:2])


def _platform(family: str, version_string: str, raw: str) -> Tuple[str, Optional[str]]:
    if family == OTHER_FAMILY:
        return UNKNOWN, None

    if family.startswith("Windows"):
        match = _WINDOWS_NT_RE.search(raw)
        if match:
            nt_version = match.group(1)
            return "Windows", WINDOWS_VERSIONS.get(nt_version, nt_version)
        return "Windows", version_string or None

    platform = PLATFORM_LABELS.get(family, family)
    if platform == "Linux":
        return platform, None
    return platform, version_string or None


def parse_user_agent(user_agent: Optional[str]) -> UserAgentInfo:
    """
    Classify a raw User-Agent header.

    Never raises. A missing or empty header yields "unknown" for device,
    platform and browser rather than None. Tablets count as mobile.
    """
    if not user_agent:
        return UserAgentInfo(
            device=UNKNOWN,
            is_mobile=False,
            platform=UNKNOWN,
            browser=UNKNOWN,
            is_bot=False,
        )

    parsed = parse(user_agent)

    if parsed.is_tablet:
        device = "tablet"
    elif parsed.is_mobile:
        device = "mobile"
    else:
        device = "desktop"

    platform, os_version = _platform(parsed.os.family, parsed.os.version_string, user_agent)

    browser_family = parsed.browser.family
    if browser_family == OTHER_FAMILY:
        browser, browser_version = UNKNOWN, None
    else:
        browser = BROWSER_LABELS.get(browser_family, browser_family)
        browser_version = _major_minor(parsed.browser.version_string)

    return UserAgentInfo(
        device=device,
        is_mobile=device in ("mobile", "tablet"),
        platform=platform,
        os_version=os_version,
        browser=browser,
        browser_version=browser_version,
        is_bot=parsed.is_bot or bool(_EXTRA_BOT_RE.search(user_agent)),
    )
