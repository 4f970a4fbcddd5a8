"""
FastAPI dependencies for dependency injection.

Process-wide singletons (cache, queue, store, geo resolver, renderer,
collector, dispatcher, pipeline) are built once from settings and injected
into services and routes. Tests replace them via app.dependency_overrides.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from tracker_app.cache.factory import CacheFactory, CacheBackend
from tracker_app.cache.strategies import CacheStrategy
from tracker_app.config import settings
from tracker_app.database.connection import get_db
from tracker_app.geo.factory import GeoProviderFactory
from tracker_app.geo.resolver import GeoResolver
from tracker_app.queue.factory import QueueFactory, QueueBackend
from tracker_app.queue.strategies import QueueStrategy
from tracker_app.rendering import QRStyleRenderer
from tracker_app.services.access_log_dispatcher import AccessLogDispatcher, DeliveryMode
from tracker_app.services.affiliate_service import AffiliateLinkService
from tracker_app.services.qr_service import QRCodeService
from tracker_app.services.redirect_pipeline import RedirectPipeline
from tracker_app.storage.factory import AccessLogStoreFactory
from tracker_app.storage.strategies import AccessLogStore
from tracker_app.tracking import IPAnonymizer, TrackingCollector


@lru_cache()
def get_cache() -> CacheStrategy:
    """Rendered-image cache (singleton, backend from settings)."""
    return CacheFactory.create(CacheBackend(settings.cache_backend))


@lru_cache()
def get_queue() -> QueueStrategy:
    """Access-log queue (singleton, backend from settings)."""
    return QueueFactory.create(QueueBackend(settings.queue_backend))


@lru_cache()
def get_access_log_store() -> AccessLogStore:
    return AccessLogStoreFactory.create()


@lru_cache()
def get_geo_resolver() -> GeoResolver:
    return GeoProviderFactory.create_resolver()


@lru_cache()
def get_renderer() -> QRStyleRenderer:
    return QRStyleRenderer()


@lru_cache()
def get_collector() -> TrackingCollector:
    anonymizer = IPAnonymizer(settings.ip_hash_salt)
    return TrackingCollector(anonymizer, max_length=settings.tracking_field_max_length)


def get_dispatcher(
    store: AccessLogStore = Depends(get_access_log_store),
) -> AccessLogDispatcher:
    mode = DeliveryMode(settings.access_log_delivery)
    if mode == DeliveryMode.QUEUE:
        return AccessLogDispatcher(mode, queue=get_queue(), queue_name=settings.queue_name)
    return AccessLogDispatcher(mode, store=store)


def get_redirect_pipeline(
    collector: TrackingCollector = Depends(get_collector),
    geo_resolver: GeoResolver = Depends(get_geo_resolver),
    store: AccessLogStore = Depends(get_access_log_store),
) -> RedirectPipeline:
    return RedirectPipeline(
        collector=collector,
        geo_resolver=geo_resolver,
        store=store,
        geo_timeout=settings.geo_total_timeout_seconds,
        not_found_path=settings.not_found_path,
        inactive_path=settings.inactive_path,
        error_path=settings.error_path,
    )


def get_qr_service(
    db: Session = Depends(get_db),
    renderer: QRStyleRenderer = Depends(get_renderer),
    cache: CacheStrategy = Depends(get_cache),
    store: AccessLogStore = Depends(get_access_log_store),
) -> QRCodeService:
    return QRCodeService(db=db, renderer=renderer, cache=cache, store=store)


def get_affiliate_service(
    db: Session = Depends(get_db),
    store: AccessLogStore = Depends(get_access_log_store),
) -> AffiliateLinkService:
    return AffiliateLinkService(db=db, store=store)
