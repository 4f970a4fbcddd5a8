import asyncio
import ipaddress
import logging
from typing import List, Optional

from .models import GeoResult
from .providers import GeoProvider

logger = logging.getLogger(__name__)


def is_private_ip(ip: str) -> bool:
    """Private, loopback, link-local or unspecified (0.0.0.0) addresses."""
    if ip == "localhost":
        return True
    try:
        address = ipaddress.ip_address(ip)
    except ValueError:
        return False
    return (
        address.is_private
        or address.is_loopback
        or address.is_link_local
        or address.is_unspecified
    )


class GeoResolver:
    """
    Chain-of-responsibility over GeoIP providers.
    
    Providers are tried in order and the first one that resolves the IP
    wins. Each attempt runs in a worker thread with a hard timeout, so a
    hung provider is abandoned rather than awaited. resolve() never raises.
    """

    def __init__(self, providers: List[GeoProvider], timeout: float = 3.0):
        self.providers = providers
        self.timeout = timeout

    async def resolve(self, ip: str, timeout: Optional[float] = None) -> GeoResult:
        """
        Resolve an IP to a location.

        Args:
            ip: Client IP address
            timeout: Per-provider timeout in seconds (defaults to self.timeout)

        Returns:
            GeoResult.local() for private addresses, the first provider
            result, or GeoResult.empty() when every provider failed
        """
        if is_private_ip(ip):
            return GeoResult.local()

        try:
            ipaddress.ip_address(ip)
        except ValueError:
            logger.debug("Skipping geo lookup for malformed IP")
            return GeoResult.empty()

        timeout = timeout if timeout is not None else self.timeout

        for provider in self.providers:
            try:
                result = await asyncio.wait_for(
                    asyncio.to_thread(provider.lookup, ip, timeout),
                    timeout=timeout,
                )
            except asyncio.TimeoutError:
                logger.debug("Geo provider %s timed out", provider.name)
                continue
            except Exception as e:
                logger.debug("Geo provider %s failed: %s", provider.name, e)
                continue

            if result is not None:
                logger.info(
                    "Resolved IP %s... -> %s, %s (%s)",
                    ip[:8], result.city, result.country, provider.name,
                )
                return result

        if self.providers:
            logger.warning("Could not resolve IP %s... with any geo provider", ip[:8])
        return GeoResult.empty()
