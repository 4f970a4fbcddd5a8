"""
Access-log storage.

Strategy Pattern over the analytics store; the redirect pipeline only sees
the AccessLogStore interface.
"""

from .strategies import AccessLogStore, SQLAlchemyAccessLogStore, GROUPABLE_FIELDS
from .factory import AccessLogStoreFactory, AccessLogStoreBackend

__all__ = [
    "AccessLogStore",
    "SQLAlchemyAccessLogStore",
    "GROUPABLE_FIELDS",
    "AccessLogStoreFactory",
    "AccessLogStoreBackend",
]
