from typing import Optional

from pydantic import BaseModel


class GeoResult(BaseModel):
    """Best-effort location of an IP. Every field may be None."""

    country: Optional[str] = None
    region: Optional[str] = None
    city: Optional[str] = None
    timezone: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @classmethod
    def empty(cls) -> "GeoResult":
        return cls()

    @classmethod
    def local(cls) -> "GeoResult":
        """Sentinel for private/loopback addresses (no lookup performed)"""
        return cls(country="Local", region="Local", city="Local")

    def is_empty(self) -> bool:
        return all(value is None for value in self.model_dump().values())

    def is_complete(self) -> bool:
        """Enough to skip a network lookup"""
        return bool(self.country and self.city)

    def merged_over(self, fallback: "GeoResult") -> "GeoResult":
        """Field-wise merge: values of self win, gaps are filled from fallback."""
        ours = self.model_dump()
        theirs = fallback.model_dump()
        return GeoResult(**{
            key: ours[key] if ours[key] is not None else theirs[key]
            for key in ours
        })
