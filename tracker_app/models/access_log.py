from sqlalchemy import Column, Integer, String, DateTime, Boolean, Float, Index
from tracker_app.database.connection import Base
from tracker_app.models._common import utcnow


class AccessLog(Base):
    """
    One row per redirect event (immutable once written).
    
    Raw IPs are never stored, only the salted ip_hash. The composite
    (entity_id, ip_hash) index backs the unique-visitor read on the
    redirect path.
    """
    __tablename__ = "access_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    entity_type = Column(String(16), nullable=False)  # "qr" | "affiliate"
    entity_id = Column(String(32), nullable=False, index=True)
    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    # Identification
    ip_hash = Column(String(64), nullable=False)
    session_id = Column(String(36), nullable=False)
    is_unique_visitor = Column(Boolean, default=False, nullable=False)

    # User agent and device
    user_agent = Column(String(500), nullable=True)
    device = Column(String(16), nullable=False)
    is_mobile = Column(Boolean, default=False, nullable=False)
    browser = Column(String(50), nullable=False)
    browser_version = Column(String(20), nullable=True)
    platform = Column(String(50), nullable=False)
    os_version = Column(String(20), nullable=True)

    # Geo
    country = Column(String(100), nullable=True)
    region = Column(String(100), nullable=True)
    city = Column(String(100), nullable=True)
    timezone = Column(String(64), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    # Origin and campaign
    referer = Column(String(500), nullable=True)
    utm_source = Column(String(200), nullable=True)
    utm_medium = Column(String(200), nullable=True)
    utm_campaign = Column(String(200), nullable=True)
    utm_term = Column(String(200), nullable=True)
    utm_content = Column(String(200), nullable=True)
    social_network = Column(String(20), nullable=True)

    # Context
    language = Column(String(16), nullable=True)
    scan_method = Column(String(16), nullable=True)
    response_time_ms = Column(Integer, nullable=True)
    is_bot = Column(Boolean, default=False, nullable=False)

    __table_args__ = (
        Index("ix_access_logs_entity_ip", "entity_id", "ip_hash"),
    )
