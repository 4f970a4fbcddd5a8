"""
GeoIP provider strategies.

Each provider wraps one free HTTP lookup service and maps its JSON to a
GeoResult. lookup() returns None when the service answers but cannot
resolve the IP; transport errors (timeouts, connection failures) are left
to propagate so the resolver can log them and move on to the next provider.
"""

from abc import ABC, abstractmethod
from typing import Optional

import requests

from .models import GeoResult


class GeoProvider(ABC):
    """Abstract base class for GeoIP providers"""

    name: str = "provider"

    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session or requests.Session()

    @abstractmethod
    def lookup(self, ip: str, timeout: float) -> Optional[GeoResult]:
        """
        Resolve an IP address.

        Args:
            ip: Public IP address
            timeout: Request timeout in seconds

        Returns:
            GeoResult, or None if the provider could not resolve the IP
        """
        pass

    def _get_json(self, url: str, timeout: float) -> Optional[dict]:
        response = self.session.get(url, timeout=timeout)
        if not response.ok:
            return None
        return response.json()


class IpWhoIsProvider(GeoProvider):
    """ipwho.is - HTTPS, no hard rate limit"""

    name = "ipwhois"

    def lookup(self, ip: str, timeout: float) -> Optional[GeoResult]:
        data = self._get_json(f"https://ipwho.is/{ip}", timeout)
        if not data or not data.get("success"):
            return None

        timezone = data.get("timezone") or {}
        return GeoResult(
            country=data.get("country") or None,
            region=data.get("region") or None,
            city=data.get("city") or None,
            timezone=timezone.get("id") if isinstance(timezone, dict) else None,
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
        )


class IpapiCoProvider(GeoProvider):
    """ipapi.co - HTTPS, 1000 requests/day on the free tier"""

    name = "ipapi_co"

    def lookup(self, ip: str, timeout: float) -> Optional[GeoResult]:
        data = self._get_json(f"https://ipapi.co/{ip}/json/", timeout)
        if not data or data.get("error"):
            return None

        return GeoResult(
            country=data.get("country_name") or None,
            region=data.get("region") or None,
            city=data.get("city") or None,
            timezone=data.get("timezone") or None,
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
        )


class IpApiProvider(GeoProvider):
    """ip-api.com - free tier is HTTP only"""

    name = "ip_api"

    FIELDS = "status,country,regionName,city,timezone,lat,lon"

    def lookup(self, ip: str, timeout: float) -> Optional[GeoResult]:
        data = self._get_json(f"http://ip-api.com/json/{ip}?fields={self.FIELDS}", timeout)
        if not data or data.get("status") != "success":
            return None

        return GeoResult(
            country=data.get("country") or None,
            region=data.get("regionName") or None,
            city=data.get("city") or None,
            timezone=data.get("timezone") or None,
            latitude=data.get("lat"),
            longitude=data.get("lon"),
        )
