"""
Database models for the link tracker.

Entities (QR codes, affiliate links) and their access logs share one
database. Access logs reference entities by opaque id plus an entity type,
so one table serves both kinds of tracked links.
"""

from .qr_code import QRCode
from .affiliate_link import AffiliateLink
from .access_log import AccessLog

__all__ = ["QRCode", "AffiliateLink", "AccessLog"]
