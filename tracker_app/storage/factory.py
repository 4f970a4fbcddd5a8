"""
Factory for creating access-log store instances.
"""

import logging
from enum import Enum

from .strategies import AccessLogStore, SQLAlchemyAccessLogStore
from tracker_app.database.connection import SessionLocal

logger = logging.getLogger(__name__)


class AccessLogStoreBackend(Enum):
    """Available access-log store backends"""
    SQLALCHEMY = "sqlalchemy"


class AccessLogStoreFactory:
    """Factory with singleton caching, like the cache and queue factories."""

    _instance: AccessLogStore = None

    @classmethod
    def create(cls, backend: AccessLogStoreBackend = AccessLogStoreBackend.SQLALCHEMY) -> AccessLogStore:
        if cls._instance is not None:
            return cls._instance

        if backend == AccessLogStoreBackend.SQLALCHEMY:
            cls._instance = SQLAlchemyAccessLogStore(SessionLocal)
            logger.info("SQLAlchemy access log store initialized")
        else:
            raise ValueError(f"Unknown access log store backend: {backend}")

        return cls._instance

    @classmethod
    def clear_instance(cls):
        """Clear cached instance (for testing)"""
        cls._instance = None
