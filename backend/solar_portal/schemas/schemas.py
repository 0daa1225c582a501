"""
Pydantic Schemas — Request & Response models for API validation.
"""
from datetime import datetime
from typing import Optional, Dict, List, Literal
from pydantic import BaseModel, Field


# ──────────────── Payment Initiator ────────────────

class PaymentRequestBody(BaseModel):
    # Required fields are checked by the service so a missing value yields the error envelope
    amount: Optional[int] = Field(None, description="Amount in the gateway's minor unit")
    description: Optional[str] = None
    mobile: Optional[str] = None
    email: Optional[str] = None


class PaymentRequestResponse(BaseModel):
    success: bool
    payment_url: Optional[str] = Field(None, alias="paymentUrl")
    authority: Optional[str] = None
    error: Optional[str] = None

    class Config:
        populate_by_name = True


# ──────────────── Payment Verifier ────────────────

class PaymentVerifyBody(BaseModel):
    authority: Optional[str] = None
    status: Optional[str] = Field(None, description="Gateway callback Status flag (OK | NOK)")


class PaymentVerifyResponse(BaseModel):
    success: bool
    status: str  # success | cancelled | failed | error
    ref_id: Optional[str] = None
    amount: Optional[int] = None
    description: Optional[str] = None
    message: str = ""
    error: Optional[str] = None


# ──────────────── History ────────────────

class PaymentOut(BaseModel):
    id: str
    amount: int
    description: str
    authority: Optional[str] = None
    ref_id: Optional[str] = None
    status: str
    mobile: Optional[str] = None
    email: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AdminPaymentOut(PaymentOut):
    user_id: str


class PaymentSummaryResponse(BaseModel):
    total_payments: int
    pending_payments: int
    successful_payments: int
    total_spent: int
    active_purchases: int


class PackageOut(BaseModel):
    id: str
    name: str
    kwh_amount: int
    duration_months: int

    class Config:
        from_attributes = True


class PurchaseOut(BaseModel):
    id: str
    amount: int
    status: Optional[str] = None
    payment_date: Optional[datetime] = None
    expiry_date: Optional[datetime] = None
    created_at: datetime
    package: Optional[PackageOut] = None

    class Config:
        from_attributes = True


class AdminPaymentListResponse(BaseModel):
    total: int
    status_distribution: Dict[str, int]
    payments: List[AdminPaymentOut]


# ──────────────── Pricing ────────────────

class PriceQuoteRequest(BaseModel):
    consumption_kwh: int = Field(..., gt=0, description="Monthly consumption in kWh")
    customer_type: Literal["residential", "commercial", "industrial"]


class PriceQuoteResponse(BaseModel):
    consumption_kwh: int
    customer_type: str
    rate: int
    total_price: int
    currency: str = "IRR"


# ──────────────── Admin / Audit ────────────────

class AuditLogEntry(BaseModel):
    id: int
    authority: str
    user_id: Optional[str] = None
    action: str
    payload_hash: Optional[str] = None
    timestamp: datetime
    log_metadata: Optional[Dict] = None

    class Config:
        from_attributes = True


# ──────────────── Generic ────────────────

class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    error_code: Optional[str] = None
