import asyncio
import logging
from datetime import timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from tracker_app.cache.strategies import CacheStrategy
from tracker_app.config import settings
from tracker_app.exceptions import EntityNotFoundError
from tracker_app.models import QRCode
from tracker_app.models._common import new_id, utcnow
from tracker_app.rendering import DEFAULT_STYLE, QRStyleRenderer, RenderStyle
from tracker_app.schemas.common import AccessSummary, DayCount, StatItem
from tracker_app.schemas.qr import QRCodeCreate, QRPreviewRequest, QRStats, QRStyleInput, filter_style_fields
from tracker_app.services.redirect_pipeline import EntityKind, TrackedEntity
from tracker_app.storage.strategies import AccessLogStore

logger = logging.getLogger(__name__)

UNKNOWN_LABEL = "Desconhecido"
STATS_DAYS = 30


def stat_items(counts: Dict[Optional[str], int]) -> List[StatItem]:
    return [StatItem(name=name or UNKNOWN_LABEL, count=count) for name, count in counts.items()]


class QRCodeService:
    """
    QR code CRUD and rendering.

    The image always encodes the tracking URL, never target_url, so the
    destination can change after the code is printed. Rendered PNGs are
    cached per (id, etag); any style change produces a new etag.
    """

    def __init__(
        self,
        db: Session,
        renderer: QRStyleRenderer,
        cache: Optional[CacheStrategy] = None,
        store: Optional[AccessLogStore] = None,
    ):
        self.db = db
        self.renderer = renderer
        self.cache = cache
        self.store = store

    @staticmethod
    def tracking_url(qr_id: str) -> str:
        return f"{settings.base_url.rstrip('/')}/r/{qr_id}"

    @staticmethod
    def etag_value(qr: QRCode) -> str:
        """Last style update as epoch milliseconds."""
        updated_at = qr.updated_at
        if updated_at.tzinfo is None:
            updated_at = updated_at.replace(tzinfo=timezone.utc)
        return str(int(updated_at.timestamp() * 1000))

    @classmethod
    def etag_for(cls, qr: QRCode) -> str:
        return f'"{cls.etag_value(qr)}"'

    @staticmethod
    def render_style_of(qr: QRCode) -> RenderStyle:
        if not qr.style:
            return DEFAULT_STYLE
        return QRStyleInput.model_validate(qr.style).to_render_style()

    async def _render(self, payload: str, style: RenderStyle) -> bytes:
        # Supersampled drawing is CPU-bound; keep it off the event loop
        return await asyncio.to_thread(self.renderer.render, payload, style)

    async def create_qr_code(self, data: QRCodeCreate) -> Tuple[QRCode, bytes]:
        style = data.style or QRStyleInput()

        qr = QRCode(
            id=new_id(),
            name=data.name,
            target_url=str(data.target_url),
            style=style.to_stored(),
        )
        self.db.add(qr)
        self.db.commit()
        self.db.refresh(qr)

        image = await self._render(self.tracking_url(qr.id), style.to_render_style())
        logger.info("Created QR code %s", qr.id)
        return qr, image

    async def preview(self, request: QRPreviewRequest) -> bytes:
        """Render without persisting anything."""
        return await self._render(request.payload, request.to_render_style())

    async def get_qr_code(self, qr_id: str) -> Optional[QRCode]:
        return self.db.query(QRCode).filter(QRCode.id == qr_id).first()

    async def list_qr_codes(self) -> List[QRCode]:
        return self.db.query(QRCode).order_by(QRCode.created_at.desc()).all()

    async def find_entity(self, qr_id: str) -> Optional[TrackedEntity]:
        qr = await self.get_qr_code(qr_id)
        if qr is None:
            return None
        return TrackedEntity(kind=EntityKind.QR, id=qr.id, destination_url=qr.target_url)

    async def render_qr_code(self, qr: QRCode) -> bytes:
        """PNG for a stored code (Cache-Aside on qr:<id>:<etag>)."""
        cache_key = f"qr:{qr.id}:{self.etag_value(qr)}"

        if self.cache:
            cached = await self.cache.get(cache_key)
            if cached:
                return cached

        image = await self._render(self.tracking_url(qr.id), self.render_style_of(qr))

        if self.cache:
            await self.cache.set(cache_key, image, ttl=settings.cache_ttl)
        return image

    async def update_style(self, qr_id: str, changes: Dict[str, Any]) -> QRCode:
        """
        Merge allow-listed style keys into the stored style.

        Keys outside STYLE_FIELDS are dropped; a None value removes the key
        so it falls back to the default.

        Raises:
            EntityNotFoundError: If the QR code does not exist
        """
        qr = await self.get_qr_code(qr_id)
        if qr is None:
            raise EntityNotFoundError(qr_id)

        old_cache_key = f"qr:{qr.id}:{self.etag_value(qr)}"

        merged = dict(qr.style or {})
        for key, value in filter_style_fields(changes).items():
            if value is None:
                merged.pop(key, None)
            else:
                merged[key] = value

        qr.style = QRStyleInput.model_validate(merged).to_stored()
        qr.updated_at = utcnow()
        self.db.commit()
        self.db.refresh(qr)

        if self.cache:
            await self.cache.delete(old_cache_key)
        return qr

    async def delete_qr_code(self, qr_id: str) -> bool:
        qr = await self.get_qr_code(qr_id)
        if qr is None:
            return False

        cache_key = f"qr:{qr.id}:{self.etag_value(qr)}"
        self.db.delete(qr)
        self.db.commit()

        if self.store:
            await self.store.delete_for_entity(qr_id)
        if self.cache:
            await self.cache.delete(cache_key)
        logger.info("Deleted QR code %s", qr_id)
        return True

    async def get_stats(self, qr_id: str) -> Optional[QRStats]:
        qr = await self.get_qr_code(qr_id)
        if qr is None:
            return None

        per_day = await self.store.accesses_per_day(qr_id, STATS_DAYS, settings.report_timezone)
        recent = await self.store.recent_accesses(qr_id, limit=50)

        return QRStats(
            qr_id=qr_id,
            total_scans=await self.store.count_accesses(qr_id),
            unique_visitors=await self.store.count_unique_visitors(qr_id),
            by_device=stat_items(await self.store.count_by(qr_id, "device")),
            by_browser=stat_items(await self.store.count_by(qr_id, "browser")),
            by_platform=stat_items(await self.store.count_by(qr_id, "platform")),
            by_country=stat_items(await self.store.count_by(qr_id, "country")),
            by_scan_method=stat_items(await self.store.count_by(qr_id, "scan_method")),
            per_day=[DayCount(date=day, count=count) for day, count in per_day.items()],
            recent_access=[AccessSummary.model_validate(row) for row in recent],
        )
