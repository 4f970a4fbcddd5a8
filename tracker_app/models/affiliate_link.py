from sqlalchemy import Column, String, DateTime, Boolean, Text
from tracker_app.database.connection import Base
from tracker_app.models._common import new_id, utcnow


class AffiliateLink(Base):
    """
    A partner affiliate redirect (/a/<slug>).
    
    Partner links expire some days after they were generated, so
    updated_at doubles as "last renewed" for the freshness status.
    """
    __tablename__ = "affiliate_links"

    id = Column(String(32), primary_key=True, default=new_id)
    slug = Column(String(64), unique=True, nullable=False, index=True)
    product_name = Column(String(300), nullable=False)
    product_image = Column(Text, nullable=True)
    affiliate_url = Column(Text, nullable=False)
    created_by = Column(String(100), nullable=False)
    category = Column(String(100), nullable=True, index=True)
    notes = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
