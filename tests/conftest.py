"""
Test configuration and fixtures.

Every test gets a fresh SQLite database. The app's singletons are
overridden so nothing leaves the process: geo lookups resolve to nothing,
the image cache lives in memory, and access records are written straight
to the test database.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from main import app
from tracker_app.cache.strategies import InMemoryCache
from tracker_app.database.connection import Base, get_db
from tracker_app.dependencies import get_access_log_store, get_cache, get_geo_resolver
from tracker_app.geo.resolver import GeoResolver
from tracker_app.storage.strategies import SQLAlchemyAccessLogStore

SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PUBLIC_IP = "8.8.8.8"
OTHER_PUBLIC_IP = "1.1.1.1"

IPHONE_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_1 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.1 Mobile/15E148 Safari/604.1"
)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    """
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()

    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def access_log_store(db_session):
    """Store bound to the test database (own session per operation)."""
    return SQLAlchemyAccessLogStore(TestingSessionLocal)


@pytest.fixture(scope="function")
def client(db_session, access_log_store):
    """
    Test client with the database and process-wide singletons overridden.
    """
    def override_get_db():
        yield db_session

    cache = InMemoryCache()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_access_log_store] = lambda: access_log_store
    app.dependency_overrides[get_geo_resolver] = lambda: GeoResolver([])
    app.dependency_overrides[get_cache] = lambda: cache

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def qr_code(client):
    """A stored QR code pointing at https://example.com/landing."""
    response = client.post(
        "/api/v1/qr/",
        json={"name": "Flyer", "targetUrl": "https://example.com/landing"},
    )
    assert response.status_code == 201
    return {
        "id": response.headers["X-QR-ID"],
        "tracking_url": response.headers["X-Tracking-URL"],
    }


@pytest.fixture
def affiliate_link(client):
    """An active affiliate link to a partner product page."""
    response = client.post(
        "/api/v1/affiliate/",
        json={
            "productName": "Fone Bluetooth Pro",
            "affiliateUrl": "https://shopee.com.br/product/123/456",
            "createdBy": "ana",
            "category": "audio",
        },
    )
    assert response.status_code == 201
    return response.json()
