"""
GeoIP enrichment.

An ordered chain of HTTP providers behind one resolver. The resolver never
raises: private addresses short-circuit to a "Local" sentinel and a fully
failed chain yields an all-None GeoResult.
"""

from .models import GeoResult
from .providers import GeoProvider, IpWhoIsProvider, IpapiCoProvider, IpApiProvider
from .resolver import GeoResolver, is_private_ip
from .factory import GeoProviderFactory, GeoProviderType

__all__ = [
    "GeoResult",
    "GeoProvider",
    "IpWhoIsProvider",
    "IpapiCoProvider",
    "IpApiProvider",
    "GeoResolver",
    "is_private_ip",
    "GeoProviderFactory",
    "GeoProviderType",
]
