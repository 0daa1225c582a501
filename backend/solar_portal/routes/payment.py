"""
Payment Routes — ZarinPal payment request, callback verification and history.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from solar_portal.database import get_db
from solar_portal.exceptions import AuthenticationError, PaymentError, PaymentValidationError
from solar_portal.routes.deps import bearer_scheme, client_ip, require_user
from solar_portal.schemas.schemas import (
    ErrorResponse, PaymentOut, PaymentRequestBody, PaymentRequestResponse,
    PaymentSummaryResponse, PaymentVerifyBody, PaymentVerifyResponse, PurchaseOut,
)
from solar_portal.services.auth_service import AuthService, AuthenticatedUser
from solar_portal.services.payment_service import PaymentService
from solar_portal.services.zarinpal import ZarinpalClient, get_gateway
from solar_portal.utils.logger import get_logger
from solar_portal.utils.rate_limiter import rate_limit

logger = get_logger(__name__)

router = APIRouter(prefix="/api/payment", tags=["Payment"])

VERIFY_ERROR_MESSAGE = "Payment verification failed"


def request_error_response(e: PaymentError, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=e.status_code,
        content={"success": False, "error": e.message, "error_code": e.error_code, **extra},
    )


def verify_error_response(e: PaymentError, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=e.status_code,
        content={"success": False, "status": "error", "error": e.message, "message": VERIFY_ERROR_MESSAGE, **extra},
    )


ERROR_ENVELOPES = {
    f"{router.prefix}/request": request_error_response,
    f"{router.prefix}/verify": verify_error_response,
}


async def invalid_body_response(request: Request, error: str, detail: list) -> Optional[JSONResponse]:
    """Answer a malformed payment body in the endpoint's own envelope.

    The bearer credential is checked first, so an anonymous caller learns
    nothing about the body and gets the 401 envelope. Returns None for paths
    outside the payment endpoints.
    """
    envelope = ERROR_ENVELOPES.get(request.url.path)
    if envelope is None:
        return None
    try:
        AuthService.resolve_user(await bearer_scheme(request))
    except AuthenticationError as e:
        return envelope(e)
    return envelope(PaymentValidationError(error), detail=detail)


@router.post(
    "/request",
    response_model=PaymentRequestResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
def request_payment(
    payload: PaymentRequestBody,
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
    gateway: ZarinpalClient = Depends(get_gateway),
    _throttle: bool = Depends(rate_limit()),
):
    """Open a gateway payment and return the StartPay redirect URL."""
    try:
        user = AuthService.resolve_user(credentials)
        result = PaymentService.request_payment(
            db, gateway, user,
            amount=payload.amount,
            description=payload.description,
            mobile=payload.mobile,
            email=payload.email,
            origin=request.headers.get("origin"),
            ip_address=client_ip(request),
            user_agent=request.headers.get("user-agent", "")[:256],
        )
    except PaymentError as e:
        logger.warning(f"Payment creation rejected ({e.error_code}): {e.message}")
        return request_error_response(e)
    except Exception:
        logger.exception("Payment creation error")
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Payment creation failed", "error_code": "internal_error"},
        )

    return PaymentRequestResponse(
        success=True,
        payment_url=result["payment_url"],
        authority=result["authority"],
    )


@router.post(
    "/verify",
    response_model=PaymentVerifyResponse,
    response_model_exclude_none=True,
)
def verify_payment(
    payload: PaymentVerifyBody,
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
    gateway: ZarinpalClient = Depends(get_gateway),
):
    """Settle a payment from the gateway callback's Authority and Status."""
    try:
        user = AuthService.resolve_user(credentials)
        outcome = PaymentService.verify_payment(
            db, gateway, user,
            authority=payload.authority,
            status_flag=payload.status,
            ip_address=client_ip(request),
            user_agent=request.headers.get("user-agent", "")[:256],
        )
    except PaymentError as e:
        logger.warning(f"Payment verification rejected ({e.error_code}): {e.message}")
        return verify_error_response(e)
    except Exception as e:
        logger.exception("Payment verification error")
        return JSONResponse(
            status_code=500,
            content={"success": False, "status": "error", "error": str(e), "message": VERIFY_ERROR_MESSAGE},
        )

    return PaymentVerifyResponse(**outcome)


@router.get("/history", response_model=list[PaymentOut])
def payment_history(
    user: AuthenticatedUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    """Caller's payments, newest first."""
    return PaymentService.list_for_user(db, user.user_id)


@router.get("/summary", response_model=PaymentSummaryResponse)
def payment_summary(
    user: AuthenticatedUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    return PaymentService.summarize_for_user(db, user.user_id)


@router.get("/purchases", response_model=list[PurchaseOut])
def purchase_history(
    user: AuthenticatedUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    """Caller's electricity package purchases, newest first."""
    return PaymentService.list_purchases(db, user.user_id)
