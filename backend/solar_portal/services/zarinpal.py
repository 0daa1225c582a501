"""
ZarinPal Gateway Client — v4 REST API (payment request / verify / StartPay redirect).

Docs: https://www.zarinpal.com/docs/paymentGateway/
"""
from dataclasses import dataclass
from typing import Any, Iterator, Optional

import httpx

from solar_portal.config import get_settings
from solar_portal.exceptions import GatewayError
from solar_portal.utils.logger import get_logger

logger = get_logger(__name__)

REQUEST_PATH = "/pg/v4/payment/request.json"
VERIFY_PATH = "/pg/v4/payment/verify.json"
START_PAY_PATH = "/pg/StartPay/{authority}"

CODE_SUCCESS = 100
CODE_ALREADY_VERIFIED = 101
CONFIRMED_CODES = frozenset({CODE_SUCCESS, CODE_ALREADY_VERIFIED})

# Status query parameter ZarinPal appends to the callback when the payer aborts
CANCELLED_STATUS_FLAG = "NOK"


@dataclass(frozen=True)
class GatewayErrors:
    """Normalized form of the gateway's ``errors`` field.

    ZarinPal sends ``[]`` on success and, on failure, either an object
    (``{"code": -9, "message": ..., "validations": [...]}``), a bare string, or
    a list of strings/objects. ``kind`` records which shape arrived.
    """

    kind: str                      # none | text | object | list
    messages: tuple = ()
    code: Optional[int] = None

    @classmethod
    def parse(cls, raw: Any) -> "GatewayErrors":
        if raw is None or raw == "" or raw == [] or raw == {}:
            return cls(kind="none")
        if isinstance(raw, str):
            return cls(kind="text", messages=(raw.strip(),))
        if isinstance(raw, dict):
            messages = []
            if raw.get("message"):
                messages.append(str(raw["message"]).strip())
            messages.extend(_flatten(raw.get("validations")))
            return cls(kind="object", messages=tuple(messages), code=_as_int(raw.get("code")))
        if isinstance(raw, list):
            return cls(kind="list", messages=tuple(_flatten(raw)))
        return cls(kind="text", messages=(str(raw),))

    def describe(self) -> str:
        text = "; ".join(m for m in self.messages if m) or "Unknown error"
        if self.code is not None:
            return f"[{self.code}] {text}"
        return text


def _flatten(items: Any) -> list:
    if not items:
        return []
    if not isinstance(items, list):
        items = [items]
    out = []
    for item in items:
        if isinstance(item, dict):
            if item.get("message"):
                out.append(str(item["message"]))
            else:
                out.extend(f"{k}: {v}" for k, v in item.items())
        elif item is not None:
            out.append(str(item))
    return out


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class PaymentRequestResult:
    authority: str
    code: int
    fee: Optional[int] = None


@dataclass(frozen=True)
class VerifyResult:
    code: Optional[int]
    ref_id: Optional[str] = None
    card_pan: Optional[str] = None
    errors: GatewayErrors = GatewayErrors(kind="none")

    @property
    def confirmed(self) -> bool:
        return self.code in CONFIRMED_CODES


class ZarinpalClient:
    """Thin synchronous wrapper around the ZarinPal v4 endpoints."""

    def __init__(
        self,
        *,
        merchant_id: str,
        base_url: str,
        timeout_seconds: float = 15.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._merchant_id = merchant_id
        self._base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self._base_url,
            timeout=timeout_seconds,
            transport=transport,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
        )

    def close(self) -> None:
        self._client.close()

    def start_pay_url(self, authority: str) -> str:
        return self._base_url + START_PAY_PATH.format(authority=authority)

    def request_payment(
        self,
        *,
        amount: int,
        description: str,
        callback_url: str,
        mobile: str = "",
        email: str = "",
    ) -> PaymentRequestResult:
        """Open a payment attempt. Raises GatewayError unless the gateway answers code 100."""
        body = {
            "merchant_id": self._merchant_id,
            "amount": amount,
            "description": description,
            "callback_url": callback_url,
            "metadata": {"mobile": mobile or "", "email": email or ""},
        }
        logger.info(f"ZarinPal request: amount={amount} callback={callback_url}")
        result = self._post(REQUEST_PATH, body)

        data = result.get("data") if isinstance(result.get("data"), dict) else {}
        code = _as_int(data.get("code"))
        if code != CODE_SUCCESS:
            errors = GatewayErrors.parse(result.get("errors"))
            raise GatewayError(f"ZarinPal error: {errors.describe()}", gateway_code=code or errors.code)

        authority = str(data.get("authority") or "").strip()
        if not authority:
            raise GatewayError("ZarinPal error: response carried no authority", gateway_code=code)

        return PaymentRequestResult(authority=authority, code=code, fee=_as_int(data.get("fee")))

    def verify_payment(self, *, amount: int, authority: str) -> VerifyResult:
        """Confirm a payment attempt. A refusal is returned, not raised; only transport errors raise."""
        body = {
            "merchant_id": self._merchant_id,
            "amount": amount,
            "authority": authority,
        }
        logger.info(f"ZarinPal verify: authority={authority} amount={amount}")
        result = self._post(VERIFY_PATH, body)

        data = result.get("data") if isinstance(result.get("data"), dict) else {}
        errors = GatewayErrors.parse(result.get("errors"))
        code = _as_int(data.get("code"))
        if code is None:
            code = errors.code

        ref_id = data.get("ref_id")
        return VerifyResult(
            code=code,
            ref_id=str(ref_id) if ref_id not in (None, "") else None,
            card_pan=data.get("card_pan"),
            errors=errors,
        )

    def _post(self, path: str, body: dict) -> dict:
        try:
            response = self._client.post(path, json=body)
        except httpx.HTTPError as e:
            logger.error(f"ZarinPal {path} unreachable: {e}")
            raise GatewayError(f"Payment gateway unreachable: {e}") from e

        try:
            payload = response.json()
        except ValueError:
            logger.error(f"ZarinPal {path} returned non-JSON (HTTP {response.status_code}): {response.text[:200]}")
            raise GatewayError(f"Payment gateway returned an unreadable response (HTTP {response.status_code})")

        if not isinstance(payload, dict):
            raise GatewayError(f"Payment gateway returned an unexpected response (HTTP {response.status_code})")

        logger.debug(f"ZarinPal {path} -> HTTP {response.status_code}: {payload}")
        return payload


def get_gateway() -> Iterator[ZarinpalClient]:
    """FastAPI dependency: yields a configured gateway client, closed after the request."""
    settings = get_settings()
    client = ZarinpalClient(
        merchant_id=settings.ZARINPAL_MERCHANT_ID,
        base_url=settings.ZARINPAL_BASE_URL,
        timeout_seconds=settings.GATEWAY_TIMEOUT_SECONDS,
    )
    try:
        yield client
    finally:
        client.close()
