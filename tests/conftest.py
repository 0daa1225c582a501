import json
import os
import tempfile
from datetime import datetime, timedelta, timezone

# Required settings must exist before the application modules are imported
os.environ.setdefault("ZARINPAL_MERCHANT_ID", "test-merchant-0000")
os.environ.setdefault("AUTH_JWT_SECRET", "test-jwt-secret")
os.environ["ZARINPAL_BASE_URL"] = "https://sandbox.zarinpal.com"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="solar-portal-logs-")

import httpx
import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from solar_portal import models  # noqa: F401  (registers tables)
from solar_portal.config import get_settings
from solar_portal.database import Base, get_db
from solar_portal.main import app
from solar_portal.models.payment import PaymentRecord
from solar_portal.services.zarinpal import ZarinpalClient, get_gateway
from solar_portal.utils.rate_limiter import reset_rate_limits

USER_ID = "11111111-1111-1111-1111-111111111111"
OTHER_USER_ID = "22222222-2222-2222-2222-222222222222"
ADMIN_ID = "99999999-9999-9999-9999-999999999999"


def make_token(user_id=USER_ID, email="user@example.com", *, secret=None, audience="authenticated", expires_in=3600):
    settings = get_settings()
    claims = {
        "sub": user_id,
        "aud": audience,
        "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
    }
    if email:
        claims["email"] = email
    return jwt.encode(claims, secret or settings.AUTH_JWT_SECRET, algorithm=settings.AUTH_JWT_ALGORITHM)


class FakeZarinpal:
    """Scripted ZarinPal sandbox served through httpx.MockTransport."""

    def __init__(self):
        self.calls = []
        self.request_response = {
            "data": {"code": 100, "message": "Success", "authority": "A1", "fee_type": "Merchant", "fee": 0},
            "errors": [],
        }
        self.verify_response = {
            "data": {"code": 100, "message": "Paid", "ref_id": 201, "card_pan": "502229******5995"},
            "errors": [],
        }
        self.on_verify = None
        self.raise_error = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.calls.append((request.url.path, body))
        if self.raise_error is not None:
            raise self.raise_error
        if request.url.path.endswith("/request.json"):
            return httpx.Response(200, json=self.request_response)
        if request.url.path.endswith("/verify.json"):
            if self.on_verify is not None:
                self.on_verify()
            return httpx.Response(200, json=self.verify_response)
        return httpx.Response(404, json={"data": [], "errors": {"code": -1, "message": "Not found"}})

    def calls_to(self, suffix):
        return [body for path, body in self.calls if path.endswith(suffix)]

    def client(self) -> ZarinpalClient:
        return ZarinpalClient(
            merchant_id=get_settings().ZARINPAL_MERCHANT_ID,
            base_url=get_settings().ZARINPAL_BASE_URL,
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture()
def settings():
    return get_settings()


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    yield db
    db.close()


@pytest.fixture()
def gateway():
    return FakeZarinpal()


@pytest.fixture()
def client(session_factory, gateway):
    def override_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    def override_gateway():
        gateway_client = gateway.client()
        try:
            yield gateway_client
        finally:
            gateway_client.close()

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_gateway] = override_gateway
    reset_rate_limits()
    yield TestClient(app)
    app.dependency_overrides.clear()
    reset_rate_limits()


@pytest.fixture()
def auth_headers():
    def _headers(user_id=USER_ID, email="user@example.com"):
        return {"Authorization": f"Bearer {make_token(user_id, email)}"}
    return _headers


@pytest.fixture()
def pending_payment(db_session):
    payment = PaymentRecord(
        user_id=USER_ID,
        amount=300000,
        description="bill",
        authority="A1",
        status="pending",
        email="user@example.com",
    )
    db_session.add(payment)
    db_session.commit()
    db_session.refresh(payment)
    return payment
