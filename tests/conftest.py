# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# Environment variables are set BEFORE the dashboard package is imported:
# dashboard.db builds its engine from DATABASE_URL at import time.
# =============================================================================

import os
import tempfile

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("APP_SECRET", "test-secret-key")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="dashboard-uploads-"))
os.environ.setdefault("CACHE_DIR", tempfile.mkdtemp(prefix="dashboard-cache-"))
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

from dashboard import db, main, models, utils
from dashboard.schemas import ImageFile


TEST_PASSWORD = "123456"


class RecordingStorage:
    """ImageStorage stand-in that remembers what it was asked to store."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.uploads = []

    def upload(self, image: ImageFile) -> str:
        self.uploads.append(image)
        if self.fail:
            raise OSError("disk full")
        return f"/customers/{image.filename}"


# =============================================================================
# Database fixtures
# =============================================================================

@pytest.fixture
def db_session():
    """Fresh schema for every test."""
    db.Base.metadata.drop_all(bind=db.engine)
    db.Base.metadata.create_all(bind=db.engine)
    session = db.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def customer(db_session):
    row = models.Customer(id="cust_1", name="Delba de Oliveira", email="delba@oliveira.com")
    db_session.add(row)
    db_session.commit()
    return row


@pytest.fixture
def user(db_session):
    row = models.User(
        id="user_1",
        name="User",
        email="user@nextmail.com",
        password=utils.hash_password(TEST_PASSWORD, iterations=1000),
    )
    db_session.add(row)
    db_session.commit()
    return row


@pytest.fixture
def populated(db_session):
    """Three customers, five invoices."""
    db_session.add_all(
        [
            models.Customer(id="cust_1", name="Delba de Oliveira", email="delba@oliveira.com"),
            models.Customer(id="cust_2", name="Lee Robinson", email="lee@robinson.com"),
            models.Customer(id="cust_3", name="Hector Simpson", email="hector@simpson.com"),
        ]
    )
    db_session.flush()
    db_session.add_all(
        [
            models.Invoice(id="inv_1", customer_id="cust_1", amount=15795, status=models.InvoiceStatus.PENDING, date="2022-12-06"),
            models.Invoice(id="inv_2", customer_id="cust_2", amount=20348, status=models.InvoiceStatus.PENDING, date="2022-11-14"),
            models.Invoice(id="inv_3", customer_id="cust_3", amount=3040, status=models.InvoiceStatus.PAID, date="2022-10-29"),
            models.Invoice(id="inv_4", customer_id="cust_1", amount=44800, status=models.InvoiceStatus.PAID, date="2023-09-10"),
            models.Invoice(id="inv_5", customer_id="cust_2", amount=34577, status=models.InvoiceStatus.PAID, date="2023-08-05"),
        ]
    )
    db_session.commit()
    return db_session


@pytest.fixture
def storage():
    return RecordingStorage()


# =============================================================================
# HTTP fixtures
# =============================================================================

@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    main.app.dependency_overrides[main.get_db] = override_get_db
    main.page_cache.clear()
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()
    main.page_cache.clear()


@pytest.fixture
def auth_client(client, user):
    response = client.post(
        "/login",
        data={"email": user.email, "password": TEST_PASSWORD},
        follow_redirects=False,
    )
    assert response.status_code == 303
    return client
