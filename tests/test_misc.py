import pytest
from fastapi.security import HTTPAuthorizationCredentials

from solar_portal.exceptions import AuthenticationError
from solar_portal.services.auth_service import AuthService
from solar_portal.services.pricing_service import PricingService
from solar_portal.utils.validators import normalize_mobile, validate_payment_fields

from conftest import USER_ID, make_token


# ─── Auth ────────────────────────────────────────────────────────────

def test_decode_valid_token():
    user = AuthService.decode_access_token(make_token(email="a@b.c"))

    assert user.user_id == USER_ID
    assert user.email == "a@b.c"


def test_decode_rejects_expired_token():
    assert AuthService.decode_access_token(make_token(expires_in=-60)) is None


def test_decode_rejects_wrong_audience():
    assert AuthService.decode_access_token(make_token(audience="anon")) is None


def test_decode_rejects_token_without_subject():
    assert AuthService.decode_access_token(make_token(user_id="")) is None


def test_resolve_user_without_credentials():
    with pytest.raises(AuthenticationError):
        AuthService.resolve_user(None)

    with pytest.raises(AuthenticationError):
        AuthService.resolve_user(HTTPAuthorizationCredentials(scheme="Bearer", credentials="garbage"))


# ─── Validators ──────────────────────────────────────────────────────

@pytest.mark.parametrize("amount,description,ok", [
    (300000, "bill", True),
    (None, "bill", False),
    (1000, None, False),
    (1000, "", False),
    (0, "bill", False),
    (True, "bill", False),
])
def test_validate_payment_fields(amount, description, ok):
    assert validate_payment_fields(amount, description)[0] is ok


@pytest.mark.parametrize("raw,expected", [
    ("09121234567", "09121234567"),
    ("+98 912 123 4567", "09121234567"),
    ("0098-912-123-4567", "09121234567"),
    (None, ""),
])
def test_normalize_mobile(raw, expected):
    assert normalize_mobile(raw) == expected


# ─── Pricing ─────────────────────────────────────────────────────────

@pytest.mark.parametrize("customer_type,rate", [("residential", 1500), ("commercial", 2000), ("industrial", 1800)])
def test_quote_uses_customer_type_rate(customer_type, rate):
    quote = PricingService.quote(300, customer_type)

    assert quote["rate"] == rate
    assert quote["total_price"] == 300 * rate


def test_quote_rejects_unknown_type():
    with pytest.raises(ValueError):
        PricingService.quote(300, "agricultural")


def test_quote_endpoint(client):
    resp = client.post("/api/pricing/quote", json={"consumption_kwh": 300, "customer_type": "residential"})

    assert resp.status_code == 200
    assert resp.json() == {
        "consumption_kwh": 300,
        "customer_type": "residential",
        "rate": 1500,
        "total_price": 450000,
        "currency": "IRR",
    }


def test_quote_endpoint_rejects_zero_consumption(client):
    resp = client.post("/api/pricing/quote", json={"consumption_kwh": 0, "customer_type": "residential"})

    assert resp.status_code == 400
    assert resp.json()["success"] is False


# ─── Health ──────────────────────────────────────────────────────────

def test_health(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"
