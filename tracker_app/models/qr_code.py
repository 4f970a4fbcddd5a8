from sqlalchemy import Column, String, DateTime, Text, JSON
from tracker_app.database.connection import Base
from tracker_app.models._common import new_id, utcnow


class QRCode(Base):
    """
    A trackable QR code.
    
    The encoded payload is always the tracking URL (<base_url>/r/<id>),
    never target_url itself, so the destination can change without
    reprinting the code.
    
    style holds the camelCase style fields exactly as accepted by the API
    (size, margin, darkColor, lightColor, logo, logoSize, moduleStyle).
    """
    __tablename__ = "qr_codes"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(200), nullable=False)
    target_url = Column(Text, nullable=False)
    style = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    # Python-side timestamps keep sub-second precision for the ETag
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
