"""
Data models produced by the tracking collector.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from tracker_app.geo.models import GeoResult


class ScanMethod(str, Enum):
    CAMERA = "camera"
    LINK_CLICK = "link_click"
    UNKNOWN = "unknown"


class UTMParams(BaseModel):
    """Campaign tags, passed through verbatim (no validation)."""

    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    utm_term: Optional[str] = None
    utm_content: Optional[str] = None


class TrackingRecord(BaseModel):
    """
    Everything learned about one inbound request before geo enrichment
    and the uniqueness check.
    
    client_ip is kept only for the geo lookup on the same request; it is
    never copied into an AccessLogRecord.
    """

    client_ip: str = Field(..., exclude=True)
    ip_hash: str
    session_id: str

    user_agent: Optional[str] = None
    device: str
    is_mobile: bool
    browser: str
    browser_version: Optional[str] = None
    platform: str
    os_version: Optional[str] = None
    is_bot: bool

    referer: Optional[str] = None
    utm: UTMParams = Field(default_factory=UTMParams)
    social_network: Optional[str] = None
    language: Optional[str] = None
    scan_method: ScanMethod = ScanMethod.UNKNOWN

    # Geo supplied by CDN headers (may be empty)
    cdn_geo: GeoResult = Field(default_factory=GeoResult)
