"""
Visitor classification for the redirect path.

Everything here is pure and synchronous: no settings lookups, no I/O.
Configuration (salt, truncation length) is passed in by the caller.
"""

from .user_agent import UserAgentInfo, parse_user_agent
from .referral import SOCIAL_NETWORKS, detect_social_network
from .anonymizer import IPAnonymizer, hash_ip
from .collector import TrackingCollector
from .models import TrackingRecord, UTMParams, ScanMethod

__all__ = [
    "UserAgentInfo",
    "parse_user_agent",
    "SOCIAL_NETWORKS",
    "detect_social_network",
    "IPAnonymizer",
    "hash_ip",
    "TrackingCollector",
    "TrackingRecord",
    "UTMParams",
    "ScanMethod",
]
