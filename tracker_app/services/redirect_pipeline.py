"""
Redirect pipeline shared by the QR (/r/<id>) and affiliate (/a/<slug>) routes.

Per request, strictly in order:

    lookup -> collect -> geo-enrich -> uniqueness read -> decision

The decision carries the redirect target and, for tracked redirects, the
finished AccessLogRecord. Persisting that record is the caller's job and
happens after the response is sent (see AccessLogDispatcher).

Uniqueness is a read-then-write without locking: two first visits from the
same IP that overlap in time can both be recorded as unique. This is an
accepted approximation.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Awaitable, Callable, Mapping, Optional

from pydantic import BaseModel

from tracker_app.geo.models import GeoResult
from tracker_app.geo.resolver import GeoResolver
from tracker_app.queue.models import AccessLogRecord
from tracker_app.storage.strategies import AccessLogStore
from tracker_app.tracking.collector import TrackingCollector
from tracker_app.tracking.models import TrackingRecord

logger = logging.getLogger(__name__)


class EntityKind(str, Enum):
    QR = "qr"
    AFFILIATE = "affiliate"


class TrackedEntity(BaseModel):
    """The slice of a QR code or affiliate link the redirect path needs."""

    kind: EntityKind
    id: str
    destination_url: str
    is_active: bool = True


class RedirectOutcome(str, Enum):
    REDIRECT = "redirect"
    NOT_FOUND = "not_found"
    INACTIVE = "inactive"
    ERROR = "error"


class RedirectDecision(BaseModel):
    outcome: RedirectOutcome
    location: str
    record: Optional[AccessLogRecord] = None


EntityLookup = Callable[[str], Awaitable[Optional[TrackedEntity]]]


class RedirectPipeline:
    def __init__(
        self,
        collector: TrackingCollector,
        geo_resolver: GeoResolver,
        store: AccessLogStore,
        geo_timeout: float = 6.0,
        not_found_path: str = "/404",
        inactive_path: str = "/link-inativo",
        error_path: str = "/erro",
    ):
        self.collector = collector
        self.geo_resolver = geo_resolver
        self.store = store
        self.geo_timeout = geo_timeout
        self.not_found_path = not_found_path
        self.inactive_path = inactive_path
        self.error_path = error_path

    async def handle(
        self,
        key: str,
        lookup: EntityLookup,
        headers: Mapping[str, str],
        query_params: Mapping[str, str],
    ) -> RedirectDecision:
        """
        Decide where a tracking URL redirects to.

        Never raises. Any failure after the entity was found still redirects
        to its destination (untracked); a failure before that redirects to
        the error page.
        """
        started = time.perf_counter()
        entity: Optional[TrackedEntity] = None

        try:
            entity = await lookup(key)
            if entity is None:
                return RedirectDecision(outcome=RedirectOutcome.NOT_FOUND, location=self.not_found_path)
            if not entity.is_active:
                return RedirectDecision(outcome=RedirectOutcome.INACTIVE, location=self.inactive_path)

            tracking = self.collector.collect_from(headers, query_params)
            geo = await self._enrich_geo(tracking)
            is_unique = not await self.store.find_prior_access(entity.id, tracking.ip_hash)

            elapsed_ms = int((time.perf_counter() - started) * 1000)
            record = self.build_record(entity, tracking, geo, is_unique, elapsed_ms)
            return RedirectDecision(
                outcome=RedirectOutcome.REDIRECT,
                location=entity.destination_url,
                record=record,
            )

        except Exception:
            logger.exception("Redirect pipeline failed for %r", key)
            if entity is not None:
                return RedirectDecision(outcome=RedirectOutcome.REDIRECT, location=entity.destination_url)
            return RedirectDecision(outcome=RedirectOutcome.ERROR, location=self.error_path)

    async def _enrich_geo(self, tracking: TrackingRecord) -> GeoResult:
        cdn_geo = tracking.cdn_geo
        if cdn_geo.is_complete():
            return cdn_geo

        try:
            resolved = await asyncio.wait_for(
                self.geo_resolver.resolve(tracking.client_ip),
                timeout=self.geo_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Geo lookup exceeded %.1fs, continuing without it", self.geo_timeout)
            resolved = GeoResult.empty()

        # CDN headers win over resolver values
        return cdn_geo.merged_over(resolved)

    @staticmethod
    def build_record(
        entity: TrackedEntity,
        tracking: TrackingRecord,
        geo: GeoResult,
        is_unique: bool,
        response_time_ms: int,
    ) -> AccessLogRecord:
        return AccessLogRecord(
            entity_type=entity.kind.value,
            entity_id=entity.id,
            ip_hash=tracking.ip_hash,
            session_id=tracking.session_id,
            is_unique_visitor=is_unique,
            user_agent=tracking.user_agent,
            device=tracking.device,
            is_mobile=tracking.is_mobile,
            browser=tracking.browser,
            browser_version=tracking.browser_version,
            platform=tracking.platform,
            os_version=tracking.os_version,
            country=geo.country,
            region=geo.region,
            city=geo.city,
            timezone=geo.timezone,
            latitude=geo.latitude,
            longitude=geo.longitude,
            referer=tracking.referer,
            social_network=tracking.social_network,
            language=tracking.language,
            scan_method=tracking.scan_method.value,
            response_time_ms=response_time_ms,
            is_bot=tracking.is_bot,
            **tracking.utm.model_dump(),
        )
