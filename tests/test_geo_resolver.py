import asyncio
import time
from typing import List, Optional

import requests

from tracker_app.geo import GeoResolver, GeoResult, IpApiProvider, IpWhoIsProvider, IpapiCoProvider
from tracker_app.geo.factory import GeoProviderFactory
from tracker_app.geo.providers import GeoProvider
from tracker_app.geo.resolver import is_private_ip

PUBLIC_IP = "8.8.8.8"


class FakeProvider(GeoProvider):
    def __init__(self, name: str, calls: List[str], result: Optional[GeoResult] = None,
                 error: Optional[Exception] = None, delay: float = 0.0):
        super().__init__(session=requests.Session())
        self.name = name
        self.calls = calls
        self.result = result
        self.error = error
        self.delay = delay

    def lookup(self, ip: str, timeout: float) -> Optional[GeoResult]:
        self.calls.append(self.name)
        if self.delay:
            time.sleep(self.delay)
        if self.error:
            raise self.error
        return self.result


class FakeResponse:
    def __init__(self, payload, ok=True):
        self.payload = payload
        self.ok = ok

    def json(self):
        return self.payload


class FakeSession:
    def __init__(self, payload, ok=True):
        self.response = FakeResponse(payload, ok)
        self.urls = []

    def get(self, url, timeout=None):
        self.urls.append((url, timeout))
        return self.response


class TestGeoResolver:
    """Provider chain"""

    def test_private_ip_short_circuits(self):
        calls = []
        resolver = GeoResolver([FakeProvider("a", calls, GeoResult(country="X"))])

        for ip in ("192.168.1.10", "10.0.0.1", "127.0.0.1", "::1", "0.0.0.0", "localhost"):
            result = asyncio.run(resolver.resolve(ip))
            assert result == GeoResult.local()

        assert calls == []

    def test_routable_addresses_are_looked_up(self):
        for ip in (PUBLIC_IP, "1.1.1.1", "2001:4860:4860::8888"):
            assert not is_private_ip(ip)

        # Reserved documentation ranges never reach a provider
        for ip in ("203.0.113.10", "198.51.100.20", "2001:db8::1"):
            assert is_private_ip(ip)

    def test_first_success_wins(self):
        calls = []
        resolver = GeoResolver([
            FakeProvider("a", calls, GeoResult(country="Brazil", city="Recife")),
            FakeProvider("b", calls, GeoResult(country="Chile")),
        ])
        result = asyncio.run(resolver.resolve(PUBLIC_IP))
        assert result.city == "Recife"
        assert calls == ["a"]

    def test_falls_back_after_failure(self):
        calls = []
        resolver = GeoResolver([
            FakeProvider("a", calls, error=requests.Timeout("slow")),
            FakeProvider("b", calls, result=None),
            FakeProvider("c", calls, GeoResult(country="Brazil", city="Natal")),
        ])
        result = asyncio.run(resolver.resolve(PUBLIC_IP))
        assert result.city == "Natal"
        assert calls == ["a", "b", "c"]

    def test_hung_provider_is_abandoned(self):
        calls = []
        resolver = GeoResolver([
            FakeProvider("slow", calls, GeoResult(country="Nowhere"), delay=0.5),
            FakeProvider("fast", calls, GeoResult(country="Brazil")),
        ], timeout=0.05)
        result = asyncio.run(resolver.resolve(PUBLIC_IP))
        assert result.country == "Brazil"
        assert calls == ["slow", "fast"]

    def test_total_failure_is_all_none(self):
        calls = []
        resolver = GeoResolver([
            FakeProvider("a", calls, error=requests.ConnectionError("down")),
            FakeProvider("b", calls, error=ValueError("bad json")),
        ])
        result = asyncio.run(resolver.resolve(PUBLIC_IP))
        assert result.is_empty()
        assert calls == ["a", "b"]

    def test_malformed_ip_skips_lookup(self):
        calls = []
        resolver = GeoResolver([FakeProvider("a", calls, GeoResult(country="X"))])
        assert asyncio.run(resolver.resolve("not-an-ip")).is_empty()
        assert calls == []


class TestGeoResult:
    def test_merge_prefers_own_values(self):
        cdn = GeoResult(country="BR", latitude=-23.5)
        resolved = GeoResult(country="Brazil", city="São Paulo", latitude=-20.0, timezone="America/Sao_Paulo")
        merged = cdn.merged_over(resolved)
        assert merged.country == "BR"
        assert merged.latitude == -23.5
        assert merged.city == "São Paulo"
        assert merged.timezone == "America/Sao_Paulo"

    def test_completeness(self):
        assert GeoResult(country="BR", city="Recife").is_complete()
        assert not GeoResult(country="BR").is_complete()


class TestProviders:
    """JSON mapping of each service"""

    def test_ipwhois(self):
        session = FakeSession({
            "success": True, "country": "Brazil", "region": "Pernambuco", "city": "Recife",
            "latitude": -8.05, "longitude": -34.9, "timezone": {"id": "America/Recife"},
        })
        result = IpWhoIsProvider(session=session).lookup(PUBLIC_IP, 3.0)
        assert result == GeoResult(
            country="Brazil", region="Pernambuco", city="Recife",
            timezone="America/Recife", latitude=-8.05, longitude=-34.9,
        )
        assert session.urls == [(f"https://ipwho.is/{PUBLIC_IP}", 3.0)]

    def test_ipwhois_unresolved(self):
        session = FakeSession({"success": False, "message": "Reserved range"})
        assert IpWhoIsProvider(session=session).lookup(PUBLIC_IP, 3.0) is None

    def test_ipapi_co(self):
        session = FakeSession({
            "country_name": "Brazil", "region": "Bahia", "city": "Salvador",
            "timezone": "America/Bahia", "latitude": -12.97, "longitude": -38.5,
        })
        result = IpapiCoProvider(session=session).lookup(PUBLIC_IP, 3.0)
        assert result.country == "Brazil"
        assert result.city == "Salvador"
        assert result.timezone == "America/Bahia"

    def test_ipapi_co_error(self):
        session = FakeSession({"error": True, "reason": "RateLimited"})
        assert IpapiCoProvider(session=session).lookup(PUBLIC_IP, 3.0) is None

    def test_ip_api(self):
        session = FakeSession({
            "status": "success", "country": "Brazil", "regionName": "Ceará", "city": "Fortaleza",
            "timezone": "America/Fortaleza", "lat": -3.73, "lon": -38.5,
        })
        result = IpApiProvider(session=session).lookup(PUBLIC_IP, 3.0)
        assert result.region == "Ceará"
        assert result.longitude == -38.5

    def test_http_error_is_unresolved(self):
        session = FakeSession({}, ok=False)
        assert IpApiProvider(session=session).lookup(PUBLIC_IP, 3.0) is None

    def test_factory_builds_chain_in_order(self):
        resolver = GeoProviderFactory.create_resolver(["ip_api", "ipwhois"])
        assert [provider.name for provider in resolver.providers] == ["ip_api", "ipwhois"]
