from datetime import datetime
from typing import List, Optional

from pydantic import Field, HttpUrl, computed_field

from tracker_app.config import settings
from tracker_app.schemas.common import AccessSummary, CamelModel, DayCount
from tracker_app.utils.affiliate import LINK_STATUS_LABELS, days_remaining, link_status


class AffiliateLinkCreate(CamelModel):
    product_name: str = Field(..., min_length=1, max_length=300)
    affiliate_url: HttpUrl
    created_by: str = Field(..., min_length=1, max_length=100)
    category: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None
    product_image: Optional[str] = None
    custom_slug: Optional[str] = Field(None, min_length=3, max_length=64, pattern=r"^[a-zA-Z0-9_-]+$")


class AffiliateLinkUpdate(CamelModel):
    """Partial update; fields left out are unchanged."""

    product_name: Optional[str] = Field(None, min_length=1, max_length=300)
    affiliate_url: Optional[HttpUrl] = None
    category: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None
    product_image: Optional[str] = None
    is_active: Optional[bool] = None


class AffiliateLinkResponse(CamelModel):
    id: str
    slug: str
    product_name: str
    product_image: Optional[str] = None
    affiliate_url: str
    created_by: str
    category: Optional[str] = None
    notes: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    total_clicks: int = 0
    unique_visitors: int = 0

    @computed_field(alias="shortUrl")
    @property
    def short_url(self) -> str:
        return f"{settings.base_url.rstrip('/')}/a/{self.slug}"

    @computed_field(alias="daysRemaining")
    @property
    def days_remaining(self) -> int:
        return days_remaining(self.updated_at, settings.affiliate_link_ttl_days)

    @computed_field(alias="linkStatus")
    @property
    def link_status(self) -> str:
        return link_status(self.days_remaining)

    @computed_field(alias="linkStatusLabel")
    @property
    def link_status_label(self) -> str:
        return LINK_STATUS_LABELS[self.link_status]


class NetworkCount(CamelModel):
    network: str
    count: int


class CountryCount(CamelModel):
    country: str
    count: int


class AffiliateStats(CamelModel):
    clicks_by_day: List[DayCount]
    clicks_by_social_network: List[NetworkCount]
    clicks_by_country: List[CountryCount]


class AffiliateLinkDetail(AffiliateLinkResponse):
    stats: AffiliateStats
    recent_access: List[AccessSummary]
