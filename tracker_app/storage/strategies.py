"""
Access-log storage using Strategy Pattern.

The redirect path needs exactly two operations from the store (the
uniqueness read and the record insert); everything else here serves the
stats endpoints and the queue worker.
"""

import logging
from abc import ABC, abstractmethod
from collections import Counter
from datetime import datetime
from typing import Callable, Dict, List, Optional

from sqlalchemy import distinct, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tracker_app.models.access_log import AccessLog
from tracker_app.queue.models import AccessLogRecord
from tracker_app.utils.dates import days_ago_start, last_n_days, local_date_key

logger = logging.getLogger(__name__)

GROUPABLE_FIELDS = (
    "device",
    "browser",
    "platform",
    "country",
    "city",
    "social_network",
    "scan_method",
    "utm_source",
    "language",
)


class AccessLogStore(ABC):
    """
    Abstract base class for access-log stores.

    Insert methods report failure by returning False; they never raise,
    so a store outage can only cost analytics, never a redirect.
    """

    @abstractmethod
    async def find_prior_access(self, entity_id: str, ip_hash: str) -> bool:
        """True if any access from ip_hash to entity_id was already recorded."""
        pass

    @abstractmethod
    async def insert_access_record(self, record: AccessLogRecord) -> bool:
        pass

    @abstractmethod
    async def insert_access_records(self, records: List[AccessLogRecord]) -> bool:
        """Batch insert (all or nothing)."""
        pass

    @abstractmethod
    async def count_accesses(self, entity_id: str) -> int:
        pass

    @abstractmethod
    async def count_unique_visitors(self, entity_id: str) -> int:
        """Distinct ip_hash values seen for entity_id."""
        pass

    @abstractmethod
    async def count_by(self, entity_id: str, field: str, since: Optional[datetime] = None) -> Dict[Optional[str], int]:
        """Access counts grouped by one of GROUPABLE_FIELDS (None key for missing values)."""
        pass

    @abstractmethod
    async def recent_accesses(self, entity_id: str, limit: int = 50) -> List[AccessLog]:
        pass

    @abstractmethod
    async def accesses_per_day(self, entity_id: str, days: int = 30, tz_name: Optional[str] = None) -> Dict[str, int]:
        """Counts per local date for the last `days` days, zero-filled, oldest first."""
        pass

    @abstractmethod
    async def delete_for_entity(self, entity_id: str) -> int:
        pass


class SQLAlchemyAccessLogStore(AccessLogStore):
    """
    AccessLog table in the application database.

    Every operation opens its own short-lived session from session_factory,
    so the store can be used from background tasks and workers after the
    request session has been closed, and concurrent writers never share a
    session.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    async def find_prior_access(self, entity_id: str, ip_hash: str) -> bool:
        with self.session_factory() as session:
            row = session.query(AccessLog.id).filter(
                AccessLog.entity_id == entity_id,
                AccessLog.ip_hash == ip_hash
            ).first()
            return row is not None

    async def insert_access_record(self, record: AccessLogRecord) -> bool:
        return await self.insert_access_records([record])

    async def insert_access_records(self, records: List[AccessLogRecord]) -> bool:
        if not records:
            return True

        session = self.session_factory()
        try:
            session.add_all([AccessLog(**record.to_row()) for record in records])
            session.commit()
            return True
        except SQLAlchemyError:
            session.rollback()
            logger.exception("Failed to store %d access log record(s)", len(records))
            return False
        finally:
            session.close()

    async def count_accesses(self, entity_id: str) -> int:
        with self.session_factory() as session:
            return session.query(func.count(AccessLog.id)).filter(
                AccessLog.entity_id == entity_id
            ).scalar() or 0

    async def count_unique_visitors(self, entity_id: str) -> int:
        with self.session_factory() as session:
            return session.query(func.count(distinct(AccessLog.ip_hash))).filter(
                AccessLog.entity_id == entity_id
            ).scalar() or 0

    async def count_by(self, entity_id: str, field: str, since: Optional[datetime] = None) -> Dict[Optional[str], int]:
        if field not in GROUPABLE_FIELDS:
            raise ValueError(f"Cannot group access logs by {field!r}")

        column = getattr(AccessLog, field)
        with self.session_factory() as session:
            query = session.query(column, func.count(AccessLog.id)).filter(
                AccessLog.entity_id == entity_id
            )
            if since is not None:
                query = query.filter(AccessLog.timestamp >= since)
            rows = query.group_by(column).order_by(func.count(AccessLog.id).desc()).all()
            return {value: count for value, count in rows}

    async def recent_accesses(self, entity_id: str, limit: int = 50) -> List[AccessLog]:
        with self.session_factory() as session:
            rows = session.query(AccessLog).filter(
                AccessLog.entity_id == entity_id
            ).order_by(AccessLog.timestamp.desc(), AccessLog.id.desc()).limit(limit).all()
            session.expunge_all()
            return rows

    async def accesses_per_day(self, entity_id: str, days: int = 30, tz_name: Optional[str] = None) -> Dict[str, int]:
        since = days_ago_start(days - 1, tz_name)
        with self.session_factory() as session:
            timestamps = session.query(AccessLog.timestamp).filter(
                AccessLog.entity_id == entity_id,
                AccessLog.timestamp >= since
            ).all()

        # Day boundaries depend on the report timezone, so grouping happens here
        counts = Counter(local_date_key(ts, tz_name) for (ts,) in timestamps)
        return {day: counts.get(day, 0) for day in last_n_days(days, tz_name)}

    async def delete_for_entity(self, entity_id: str) -> int:
        with self.session_factory() as session:
            deleted = session.query(AccessLog).filter(
                AccessLog.entity_id == entity_id
            ).delete(synchronize_session=False)
            session.commit()
            return deleted
