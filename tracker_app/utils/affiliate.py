"""
Affiliate link helpers: slugs, partner URL check and link freshness.
"""

import math
import random
import re
import string
import unicodedata
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional
from urllib.parse import urlsplit

SLUG_BASE_MAX_LENGTH = 30
SLUG_SUFFIX_LENGTH = 4
SLUG_SUFFIX_CHARACTERS = string.ascii_lowercase + string.digits

LINK_STATUS_LABELS = {
    "expired": "Expirado",
    "danger": "Crítico",
    "warning": "Atenção",
    "ok": "OK",
}


def slugify(text: str) -> str:
    """Lower-case ASCII slug of a product name, at most 30 characters."""
    text = unicodedata.normalize("NFD", text.lower())
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = re.sub(r"[^a-z0-9\s-]", "", text)
    text = re.sub(r"\s+", "-", text)
    text = re.sub(r"-+", "-", text)
    return text[:SLUG_BASE_MAX_LENGTH].strip("-")


def generate_slug(product_name: str) -> str:
    """
    Friendly slug with a random suffix, e.g. "fone-bluetooth-x9-k3f2".

    The suffix makes collisions unlikely, not impossible; callers still
    check the database and regenerate on conflict.
    """
    suffix = "".join(random.choice(SLUG_SUFFIX_CHARACTERS) for _ in range(SLUG_SUFFIX_LENGTH))
    base = slugify(product_name)
    return f"{base}-{suffix}" if base else suffix


def is_allowed_partner_url(url: str, allowed_hosts: Iterable[str]) -> bool:
    """True when url is http(s) and its host is an allowed host or a subdomain of one."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    if parts.scheme not in ("http", "https"):
        return False
    host = (parts.hostname or "").lower()
    if not host:
        return False
    return any(host == allowed or host.endswith("." + allowed) for allowed in allowed_hosts)


def days_remaining(updated_at: datetime, ttl_days: int = 7, now: Optional[datetime] = None) -> int:
    """Whole days (rounded up) until updated_at + ttl_days, clamped to 0..ttl_days."""
    if updated_at.tzinfo is None:
        updated_at = updated_at.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    remaining = (updated_at + timedelta(days=ttl_days)) - now
    days = math.ceil(remaining.total_seconds() / 86400)
    return max(0, min(ttl_days, days))


def link_status(days: int) -> str:
    if days <= 0:
        return "expired"
    if days <= 2:
        return "danger"
    if days <= 4:
        return "warning"
    return "ok"
