import logging

from fastapi import Depends, FastAPI, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tracker_app.config import settings
from tracker_app.database.connection import engine, Base, get_db
from tracker_app.api.v1 import affiliate, pages, qr, redirect

# Import models to ensure they're registered with Base
from tracker_app.models import QRCode, AffiliateLink, AccessLog  # noqa: F401

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create database tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Trackable QR codes and affiliate links with privacy-preserving analytics",
    debug=settings.debug
)


@app.get("/")
def read_root():
    """Root endpoint with API information"""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc"
    }


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    """Health check endpoint (includes a database ping)"""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Health check failed: %s", e)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unhealthy", "database": "unreachable", "environment": settings.environment},
        )
    return {"status": "healthy", "database": "ok", "environment": settings.environment}


######## Include routers
app.include_router(qr.router, prefix="/api/v1")
app.include_router(affiliate.router, prefix="/api/v1")
app.include_router(redirect.router)
app.include_router(pages.router)
