"""
Social-network attribution from Referer and User-Agent.

In-app browsers often strip the Referer, but they leave their own token in
the User-Agent (Facebook's FBAN/FBAV, Instagram, TikTok's musical_ly), so
both signals are checked for every network.
"""

from typing import Optional, Tuple
from urllib.parse import urlsplit


# (label, referer host domains, android-app package prefixes, user-agent tokens)
_NETWORK_RULES: Tuple[Tuple[str, Tuple[str, ...], Tuple[str, ...], Tuple[str, ...]], ...] = (
    ("instagram", ("instagram.com",), ("com.instagram",), ("instagram",)),
    ("facebook", ("facebook.com", "fb.com", "fb.me"), ("com.facebook",), ("fban", "fbav", "fb_iab")),
    ("tiktok", ("tiktok.com",), ("com.zhiliaoapp", "com.ss.android.ugc"), ("tiktok", "musical_ly", "bytedancewebview")),
    ("twitter", ("twitter.com", "x.com", "t.co"), ("com.twitter",), ("twitter",)),
    ("linkedin", ("linkedin.com", "lnkd.in"), ("com.linkedin",), ("linkedin",)),
    ("whatsapp", ("whatsapp.com", "wa.me"), ("com.whatsapp",), ("whatsapp",)),
    ("telegram", ("telegram.org", "telegram.me", "t.me"), ("org.telegram",), ("telegram",)),
    ("pinterest", ("pinterest.com", "pin.it"), ("com.pinterest",), ("pinterest",)),
    ("youtube", ("youtube.com", "youtu.be"), ("com.google.android.youtube",), ()),
    ("reddit", ("reddit.com", "redd.it"), ("com.reddit",), ()),
    ("kwai", ("kwai.com", "kw.ai"), ("com.kwai",), ("kwai",)),
    ("snapchat", ("snapchat.com",), ("com.snapchat",), ("snapchat",)),
)

SOCIAL_NETWORKS = tuple(rule[0] for rule in _NETWORK_RULES)


def _referer_host(referer: str) -> str:
    try:
        return (urlsplit(referer).hostname or "").lower()
    except ValueError:
        return ""


def _host_matches(host: str, domains: Tuple[str, ...]) -> bool:
    # Exact host or subdomain; a bare substring test would read reddit.com as t.co
    return any(host == domain or host.endswith("." + domain) for domain in domains)


def detect_social_network(referer: Optional[str], user_agent: Optional[str]) -> Optional[str]:
    """
    Return the social network a visitor came from, or None for direct/unknown.

    Case-insensitive. Referer hosts are matched as domains, android-app://
    referers by package name, and User-Agents by in-app browser token.
    First matching network wins.
    """
    ref = (referer or "").lower()
    ua = (user_agent or "").lower()
    host = _referer_host(ref) if ref else ""

    for label, domains, packages, ua_tokens in _NETWORK_RULES:
        if host and _host_matches(host, domains):
            return label
        if host and any(host.startswith(package) for package in packages):
            return label
        if ua and any(token in ua for token in ua_tokens):
            return label

    return None
