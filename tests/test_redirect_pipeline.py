"""
RedirectPipeline unit tests.

The store is the real SQLAlchemy store on the test database; entity
lookups and the geo resolver are small fakes.
"""

import asyncio

from tracker_app.geo.models import GeoResult
from tracker_app.services.redirect_pipeline import (
    EntityKind,
    RedirectOutcome,
    RedirectPipeline,
    TrackedEntity,
)
from tracker_app.tracking import IPAnonymizer, TrackingCollector

PUBLIC_IP = "8.8.8.8"
OTHER_PUBLIC_IP = "1.1.1.1"
IPHONE_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_1 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.1 Mobile/15E148 Safari/604.1"
)
DESTINATION = "https://example.com/landing"


class FakeResolver:
    def __init__(self, result=None, delay=0.0):
        self.result = result or GeoResult.empty()
        self.delay = delay
        self.calls = []

    async def resolve(self, ip, timeout=None):
        self.calls.append(ip)
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.result


def entity_lookup(*entities):
    by_key = {entity.id: entity for entity in entities}

    async def lookup(key):
        return by_key.get(key)

    return lookup


async def failing_lookup(key):
    raise RuntimeError("database is down")


def make_pipeline(store, resolver=None, geo_timeout=6.0):
    collector = TrackingCollector(IPAnonymizer("test-salt"))
    return RedirectPipeline(
        collector=collector,
        geo_resolver=resolver or FakeResolver(),
        store=store,
        geo_timeout=geo_timeout,
    )


def headers_for(ip, **extra):
    headers = {"x-forwarded-for": ip, "user-agent": IPHONE_UA}
    headers.update(extra)
    return headers


QR = TrackedEntity(kind=EntityKind.QR, id="qr1", destination_url=DESTINATION)
OTHER_QR = TrackedEntity(kind=EntityKind.QR, id="qr2", destination_url="https://example.org/")
INACTIVE_LINK = TrackedEntity(
    kind=EntityKind.AFFILIATE, id="aff1", destination_url="https://shopee.com.br/p/1", is_active=False
)


class TestLookupBranches:
    def test_not_found(self, access_log_store):
        pipeline = make_pipeline(access_log_store)
        decision = asyncio.run(pipeline.handle("missing", entity_lookup(QR), headers_for(PUBLIC_IP), {}))
        assert decision.outcome == RedirectOutcome.NOT_FOUND
        assert decision.location == "/404"
        assert decision.record is None

    def test_inactive_is_not_tracked(self, access_log_store):
        resolver = FakeResolver()
        pipeline = make_pipeline(access_log_store, resolver)
        decision = asyncio.run(pipeline.handle("aff1", entity_lookup(INACTIVE_LINK), headers_for(PUBLIC_IP), {}))
        assert decision.outcome == RedirectOutcome.INACTIVE
        assert decision.location == "/link-inativo"
        assert decision.record is None
        assert resolver.calls == []

    def test_lookup_failure_goes_to_error_page(self, access_log_store):
        pipeline = make_pipeline(access_log_store)
        decision = asyncio.run(pipeline.handle("qr1", failing_lookup, headers_for(PUBLIC_IP), {}))
        assert decision.outcome == RedirectOutcome.ERROR
        assert decision.location == "/erro"

    def test_tracking_failure_still_redirects(self, access_log_store, monkeypatch):
        async def broken_read(entity_id, ip_hash):
            raise RuntimeError("read failed")

        monkeypatch.setattr(access_log_store, "find_prior_access", broken_read)
        pipeline = make_pipeline(access_log_store)
        decision = asyncio.run(pipeline.handle("qr1", entity_lookup(QR), headers_for(PUBLIC_IP), {}))
        assert decision.outcome == RedirectOutcome.REDIRECT
        assert decision.location == DESTINATION
        assert decision.record is None


class TestRecord:
    def test_record_contents(self, access_log_store):
        pipeline = make_pipeline(access_log_store, FakeResolver(GeoResult(country="Brazil", city="Recife")))
        decision = asyncio.run(pipeline.handle(
            "qr1",
            entity_lookup(QR),
            headers_for(PUBLIC_IP, referer="https://l.instagram.com/", **{"accept-language": "pt-BR"}),
            {"utm_source": "flyer", "utm_medium": "print"},
        ))

        record = decision.record
        assert decision.outcome == RedirectOutcome.REDIRECT
        assert record.entity_type == "qr"
        assert record.entity_id == "qr1"
        assert record.is_unique_visitor is True
        assert record.device == "mobile"
        assert record.platform == "iOS"
        assert record.social_network == "instagram"
        assert record.scan_method == "link_click"
        assert record.language == "pt-BR"
        assert record.utm_source == "flyer"
        assert record.utm_medium == "print"
        assert record.country == "Brazil"
        assert record.city == "Recife"
        assert record.response_time_ms >= 0
        assert PUBLIC_IP not in record.model_dump_json()


class TestGeoEnrichment:
    def test_complete_cdn_geo_skips_lookup(self, access_log_store):
        resolver = FakeResolver(GeoResult(country="Elsewhere", city="Elsewhere"))
        pipeline = make_pipeline(access_log_store, resolver)
        headers = headers_for(PUBLIC_IP, **{"cf-ipcountry": "BR", "cf-ipcity": "Olinda"})
        record = asyncio.run(pipeline.handle("qr1", entity_lookup(QR), headers, {})).record
        assert resolver.calls == []
        assert record.country == "BR"
        assert record.city == "Olinda"

    def test_cdn_values_win_over_resolver(self, access_log_store):
        resolver = FakeResolver(GeoResult(country="Brazil", city="Recife", timezone="America/Recife"))
        pipeline = make_pipeline(access_log_store, resolver)
        headers = headers_for(PUBLIC_IP, **{"cf-ipcountry": "BR"})
        record = asyncio.run(pipeline.handle("qr1", entity_lookup(QR), headers, {})).record
        assert resolver.calls == [PUBLIC_IP]
        assert record.country == "BR"
        assert record.city == "Recife"
        assert record.timezone == "America/Recife"

    def test_slow_geo_does_not_block_redirect(self, access_log_store):
        pipeline = make_pipeline(access_log_store, FakeResolver(GeoResult(country="Late"), delay=1.0), geo_timeout=0.05)
        decision = asyncio.run(pipeline.handle("qr1", entity_lookup(QR), headers_for(PUBLIC_IP), {}))
        assert decision.outcome == RedirectOutcome.REDIRECT
        assert decision.record.country is None


class TestUniqueness:
    def test_only_first_visit_is_unique(self, access_log_store):
        pipeline = make_pipeline(access_log_store)

        async def visit(key, ip):
            decision = await pipeline.handle(key, entity_lookup(QR, OTHER_QR), headers_for(ip), {})
            assert await access_log_store.insert_access_record(decision.record)
            return decision.record.is_unique_visitor

        async def scenario():
            return [await visit("qr1", PUBLIC_IP) for _ in range(4)]

        assert asyncio.run(scenario()) == [True, False, False, False]

    def test_uniqueness_is_per_entity(self, access_log_store):
        pipeline = make_pipeline(access_log_store)

        async def visit(key, ip):
            decision = await pipeline.handle(key, entity_lookup(QR, OTHER_QR), headers_for(ip), {})
            await access_log_store.insert_access_record(decision.record)
            return decision.record.is_unique_visitor

        async def scenario():
            return [
                await visit("qr1", PUBLIC_IP),
                await visit("qr1", PUBLIC_IP),
                await visit("qr2", PUBLIC_IP),
                await visit("qr1", OTHER_PUBLIC_IP),
            ]

        assert asyncio.run(scenario()) == [True, False, True, True]

    def test_overlapping_first_visits_may_both_count(self, access_log_store):
        """
        Uniqueness is read before the record is written, without locking.
        Two first visits that overlap can both be unique; this is accepted.
        """
        pipeline = make_pipeline(access_log_store)

        async def scenario():
            return await asyncio.gather(
                pipeline.handle("qr1", entity_lookup(QR), headers_for(PUBLIC_IP), {}),
                pipeline.handle("qr1", entity_lookup(QR), headers_for(PUBLIC_IP), {}),
            )

        first, second = asyncio.run(scenario())
        assert first.record.is_unique_visitor is True
        assert second.record.is_unique_visitor is True
        assert first.record.session_id != second.record.session_id
