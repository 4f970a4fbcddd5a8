from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import ConfigDict, Field, HttpUrl, computed_field, field_validator
from pydantic.alias_generators import to_camel

from tracker_app.config import settings
from tracker_app.rendering import ModuleStyle, RenderStyle, clamp_logo_size
from tracker_app.schemas.common import AccessSummary, CamelModel, DayCount, StatItem

# Keys a style update may touch; anything else in the body is dropped
STYLE_FIELDS = ("size", "margin", "darkColor", "lightColor", "logo", "logoSize", "moduleStyle")

HEX_COLOR_PATTERN = r"^#[0-9a-fA-F]{6}$"

DEFAULT_PREVIEW_URL = "https://exemplo.com"


def filter_style_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if key in STYLE_FIELDS}


class QRStyleInput(CamelModel):
    """
    Style fields as accepted over the API. Every field is optional; missing
    ones fall back to the renderer defaults (400px, margin 2, black on
    white, square modules, logo at 20%).
    """

    size: Optional[int] = Field(None, ge=200, le=800)
    margin: Optional[int] = Field(None, ge=0, le=10)
    dark_color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    light_color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    logo: Optional[str] = Field(None, description="Base64 image or data: URI")
    logo_size: Optional[int] = Field(None, description="Percent of the QR size, clamped to 10..25")
    module_style: Optional[ModuleStyle] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    @field_validator("logo_size")
    @classmethod
    def limit_logo_size(cls, value: Optional[int]) -> Optional[int]:
        return None if value is None else clamp_logo_size(value)

    def to_render_style(self) -> RenderStyle:
        return RenderStyle.from_fields({
            "size": self.size,
            "margin": self.margin,
            "dark_color": self.dark_color,
            "light_color": self.light_color,
            "module_style": self.module_style,
            "logo": self.logo,
            "logo_size_percent": self.logo_size,
        })

    def to_stored(self) -> Dict[str, Any]:
        """camelCase dict with only the fields that were given."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class QRStylePatch(QRStyleInput):
    """Partial style update. An explicit null removes the field (e.g. the logo)."""


class QRCodeCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    target_url: HttpUrl = Field(..., description="Where the tracking URL redirects to")
    style: Optional[QRStyleInput] = None


class QRPreviewRequest(QRStyleInput):
    preview_url: Optional[str] = Field(None, max_length=2048)

    @property
    def payload(self) -> str:
        return self.preview_url or DEFAULT_PREVIEW_URL


class QRCodeResponse(CamelModel):
    id: str
    name: str
    target_url: str
    style: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime

    @computed_field(alias="trackingUrl")
    @property
    def tracking_url(self) -> str:
        return f"{settings.base_url.rstrip('/')}/r/{self.id}"


class QRStyleResponse(CamelModel):
    """Stored style plus the defaults it is rendered with."""

    id: str
    name: str
    target_url: str
    style: Dict[str, Any]
    effective_style: Dict[str, Any]
    updated_at: datetime


class QRStats(CamelModel):
    qr_id: str
    total_scans: int
    unique_visitors: int
    by_device: List[StatItem]
    by_browser: List[StatItem]
    by_platform: List[StatItem]
    by_country: List[StatItem]
    by_scan_method: List[StatItem]
    per_day: List[DayCount]
    recent_access: List[AccessSummary]
