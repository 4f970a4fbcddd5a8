from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """JSON uses camelCase; Python attributes stay snake_case."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class StatItem(CamelModel):
    name: str
    count: int


class DayCount(CamelModel):
    date: str  # YYYY-MM-DD in the report timezone
    count: int


class AccessSummary(CamelModel):
    """One row of the recent-access list."""

    id: int
    timestamp: datetime
    device: str
    browser: str
    platform: str
    country: Optional[str] = None
    region: Optional[str] = None
    city: Optional[str] = None
    social_network: Optional[str] = None
    referer: Optional[str] = None
    scan_method: Optional[str] = None
    is_unique_visitor: bool
