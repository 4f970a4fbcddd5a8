import logging
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from tracker_app.config import settings
from tracker_app.exceptions import EntityNotFoundError, InvalidDestinationError, SlugConflictError
from tracker_app.models import AffiliateLink
from tracker_app.models._common import new_id
from tracker_app.schemas.affiliate import (
    AffiliateLinkCreate,
    AffiliateLinkDetail,
    AffiliateLinkResponse,
    AffiliateLinkUpdate,
    AffiliateStats,
    CountryCount,
    NetworkCount,
)
from tracker_app.schemas.common import AccessSummary, DayCount
from tracker_app.services.redirect_pipeline import EntityKind, TrackedEntity
from tracker_app.storage.strategies import AccessLogStore
from tracker_app.utils.affiliate import generate_slug, is_allowed_partner_url

logger = logging.getLogger(__name__)

DIRECT_LABEL = "direto"
UNKNOWN_COUNTRY_LABEL = "Desconhecido"
STATS_DAYS = 30
RECENT_ACCESS_LIMIT = 50
SLUG_ATTEMPTS = 5


class AffiliateLinkService:
    """
    Affiliate link CRUD.

    Destinations must be on the partner allow-list; the check runs on
    create and again whenever the URL is updated.
    """

    def __init__(
        self,
        db: Session,
        store: AccessLogStore,
        allowed_hosts: Optional[Iterable[str]] = None,
    ):
        self.db = db
        self.store = store
        self.allowed_hosts = tuple(allowed_hosts if allowed_hosts is not None else settings.affiliate_allowed_hosts)

    def validate_destination(self, url: str) -> None:
        if not is_allowed_partner_url(url, self.allowed_hosts):
            raise InvalidDestinationError(
                f"Affiliate URL must point to one of: {', '.join(self.allowed_hosts)}"
            )

    def _slug_taken(self, slug: str) -> bool:
        return self.db.query(AffiliateLink.id).filter(AffiliateLink.slug == slug).first() is not None

    def _new_slug(self, product_name: str) -> str:
        for _ in range(SLUG_ATTEMPTS):
            slug = generate_slug(product_name)
            if not self._slug_taken(slug):
                return slug
        # Extremely unlikely; fall back to an id-based slug
        return new_id()[:12]

    async def _with_counts(self, link: AffiliateLink) -> AffiliateLinkResponse:
        response = AffiliateLinkResponse.model_validate(link)
        response.total_clicks = await self.store.count_accesses(link.id)
        response.unique_visitors = await self.store.count_unique_visitors(link.id)
        return response

    async def list_links(
        self,
        created_by: Optional[str] = None,
        category: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> List[AffiliateLinkResponse]:
        query = self.db.query(AffiliateLink)
        if created_by:
            query = query.filter(AffiliateLink.created_by == created_by)
        if category:
            query = query.filter(AffiliateLink.category == category)
        if is_active is not None:
            query = query.filter(AffiliateLink.is_active == is_active)

        links = query.order_by(AffiliateLink.updated_at.desc()).all()
        return [await self._with_counts(link) for link in links]

    async def create_link(self, data: AffiliateLinkCreate) -> AffiliateLink:
        """
        Raises:
            InvalidDestinationError: URL host is not an allowed partner
            SlugConflictError: custom_slug is already in use
        """
        affiliate_url = str(data.affiliate_url)
        self.validate_destination(affiliate_url)

        if data.custom_slug:
            slug = data.custom_slug
            if self._slug_taken(slug):
                raise SlugConflictError(slug)
        else:
            slug = self._new_slug(data.product_name)

        link = AffiliateLink(
            id=new_id(),
            slug=slug,
            product_name=data.product_name,
            product_image=data.product_image,
            affiliate_url=affiliate_url,
            created_by=data.created_by,
            category=data.category,
            notes=data.notes,
            is_active=True,
        )
        self.db.add(link)
        self.db.commit()
        self.db.refresh(link)
        logger.info("Created affiliate link %s (/a/%s)", link.id, link.slug)
        return link

    async def get_link(self, link_id: str) -> Optional[AffiliateLink]:
        return self.db.query(AffiliateLink).filter(AffiliateLink.id == link_id).first()

    async def get_link_by_slug(self, slug: str) -> Optional[AffiliateLink]:
        return self.db.query(AffiliateLink).filter(AffiliateLink.slug == slug).first()

    async def find_entity(self, slug: str) -> Optional[TrackedEntity]:
        link = await self.get_link_by_slug(slug)
        if link is None:
            return None
        return TrackedEntity(
            kind=EntityKind.AFFILIATE,
            id=link.id,
            destination_url=link.affiliate_url,
            is_active=link.is_active,
        )

    async def get_link_details(self, link_id: str) -> Optional[AffiliateLinkDetail]:
        link = await self.get_link(link_id)
        if link is None:
            return None

        summary = await self._with_counts(link)
        per_day = await self.store.accesses_per_day(link_id, STATS_DAYS, settings.report_timezone)
        by_network = await self.store.count_by(link_id, "social_network")
        by_country = await self.store.count_by(link_id, "country")
        recent = await self.store.recent_accesses(link_id, limit=RECENT_ACCESS_LIMIT)

        stats = AffiliateStats(
            clicks_by_day=[DayCount(date=day, count=count) for day, count in per_day.items()],
            clicks_by_social_network=[
                NetworkCount(network=network or DIRECT_LABEL, count=count)
                for network, count in by_network.items()
            ],
            clicks_by_country=[
                CountryCount(country=country or UNKNOWN_COUNTRY_LABEL, count=count)
                for country, count in by_country.items()
            ],
        )
        return AffiliateLinkDetail(
            **summary.model_dump(exclude={"short_url", "days_remaining", "link_status", "link_status_label"}),
            stats=stats,
            recent_access=[AccessSummary.model_validate(row) for row in recent],
        )

    async def update_link(self, link_id: str, data: AffiliateLinkUpdate) -> AffiliateLink:
        """
        Raises:
            EntityNotFoundError: If the link does not exist
            InvalidDestinationError: If a new URL is not an allowed partner
        """
        link = await self.get_link(link_id)
        if link is None:
            raise EntityNotFoundError(link_id)

        changes = data.model_dump(exclude_unset=True)
        if changes.get("affiliate_url") is not None:
            changes["affiliate_url"] = str(changes["affiliate_url"])
            self.validate_destination(changes["affiliate_url"])

        for field, value in changes.items():
            if value is None and field in ("product_name", "affiliate_url", "is_active"):
                continue
            setattr(link, field, value)

        self.db.commit()
        self.db.refresh(link)
        return link

    async def delete_link(self, link_id: str) -> bool:
        link = await self.get_link(link_id)
        if link is None:
            return False

        self.db.delete(link)
        self.db.commit()
        await self.store.delete_for_entity(link_id)
        logger.info("Deleted affiliate link %s", link_id)
        return True
