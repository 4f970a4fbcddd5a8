"""
Data models for queue messages.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from tracker_app.models._common import utcnow


class AccessLogRecord(BaseModel):
    """
    One redirect event, ready for persistence.

    Built once per redirect by the pipeline and never modified afterwards.
    Carries the salted ip_hash only; the raw client IP never gets here.
    """

    entity_type: str = Field(..., description="'qr' or 'affiliate'")
    entity_id: str = Field(..., description="Id of the QR code or affiliate link")
    timestamp: datetime = Field(default_factory=utcnow, description="When the redirect happened")

    ip_hash: str
    session_id: str
    is_unique_visitor: bool = False

    user_agent: Optional[str] = None
    device: str = "unknown"
    is_mobile: bool = False
    browser: str = "unknown"
    browser_version: Optional[str] = None
    platform: str = "unknown"
    os_version: Optional[str] = None

    country: Optional[str] = None
    region: Optional[str] = None
    city: Optional[str] = None
    timezone: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    referer: Optional[str] = None
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    utm_term: Optional[str] = None
    utm_content: Optional[str] = None
    social_network: Optional[str] = None

    language: Optional[str] = None
    scan_method: Optional[str] = None
    response_time_ms: Optional[int] = None
    is_bot: bool = False

    # Set by queue backends on consume, used for acknowledgement
    message_id: Optional[str] = Field(None, exclude=True)

    model_config = {
        "frozen": False,
        "json_schema_extra": {
            "example": {
                "entity_type": "qr",
                "entity_id": "3f9c1d6e8a2b4c7d9e0f1a2b3c4d5e6f",
                "timestamp": "2025-10-29T10:30:00Z",
                "ip_hash": "9a8b7c6d5e4f3a2b",
                "session_id": "c0a8012e-7d1b-4b4e-9f5a-2d3c4b5a6e7f",
                "is_unique_visitor": True,
                "device": "mobile",
                "browser": "Safari",
                "platform": "iOS",
                "country": "Brazil",
                "social_network": "instagram",
                "scan_method": "camera",
            }
        },
    }

    def to_row(self) -> dict:
        """Column values for an AccessLog insert."""
        return self.model_dump()
