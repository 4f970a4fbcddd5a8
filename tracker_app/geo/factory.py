"""
Factory for the GeoIP provider chain.
"""

from enum import Enum
from typing import List, Optional

from .providers import GeoProvider, IpWhoIsProvider, IpapiCoProvider, IpApiProvider
from .resolver import GeoResolver
from tracker_app.config import settings


class GeoProviderType(Enum):
    """Available GeoIP providers"""
    IPWHOIS = "ipwhois"
    IPAPI_CO = "ipapi_co"
    IP_API = "ip_api"


class GeoProviderFactory:
    """
    Builds the ordered provider chain from settings.geo_providers.
    """

    _providers = {
        GeoProviderType.IPWHOIS: IpWhoIsProvider,
        GeoProviderType.IPAPI_CO: IpapiCoProvider,
        GeoProviderType.IP_API: IpApiProvider,
    }

    @classmethod
    def create_provider(cls, provider_type: GeoProviderType) -> GeoProvider:
        """
        Create a single provider.

        Raises:
            ValueError: If provider_type is unknown
        """
        provider_cls = cls._providers.get(provider_type)
        if provider_cls is None:
            raise ValueError(f"Unknown geo provider: {provider_type}")
        return provider_cls()

    @classmethod
    def create_resolver(cls, names: Optional[List[str]] = None) -> GeoResolver:
        """
        Create a resolver over the named providers, in order.

        Args:
            names: Provider names. If None, uses settings.geo_providers.
        """
        if names is None:
            names = settings.geo_providers

        providers = [cls.create_provider(GeoProviderType(name)) for name in names]
        return GeoResolver(providers, timeout=settings.geo_timeout_seconds)
