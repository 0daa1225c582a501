"""
Admin Routes — Payment console and audit trail access.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy import func
from sqlalchemy.orm import Session

from solar_portal.database import get_db
from solar_portal.exceptions import PaymentNotFoundError
from solar_portal.models.payment import PaymentRecord
from solar_portal.routes.deps import client_ip, require_admin
from solar_portal.schemas.schemas import AdminPaymentListResponse, AdminPaymentOut, AuditLogEntry
from solar_portal.services.audit_service import AuditService
from solar_portal.services.auth_service import AuthenticatedUser
from solar_portal.services.payment_service import PaymentService

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.get("/payments", response_model=AdminPaymentListResponse)
def list_payments(
    status: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    db: Session = Depends(get_db),
    _admin: AuthenticatedUser = Depends(require_admin),
):
    """List all payments with optional status filter."""
    query = db.query(PaymentRecord).order_by(PaymentRecord.created_at.desc())
    if status:
        query = query.filter(PaymentRecord.status == status)

    total = query.count()
    payments = query.offset(offset).limit(limit).all()

    distribution = db.query(
        PaymentRecord.status, func.count(PaymentRecord.id)
    ).group_by(PaymentRecord.status).all()

    return AdminPaymentListResponse(
        total=total,
        status_distribution={s: c for s, c in distribution},
        payments=[AdminPaymentOut.model_validate(p) for p in payments],
    )


@router.delete("/payments/{payment_id}")
def delete_payment(
    payment_id: str,
    request: Request,
    db: Session = Depends(get_db),
    admin: AuthenticatedUser = Depends(require_admin),
):
    """Remove a payment record. Its audit trail is retained."""
    try:
        PaymentService.delete_payment(db, payment_id, admin.user_id, ip_address=client_ip(request))
    except PaymentNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    return {"success": True, "deleted": payment_id}


@router.get("/payments/{payment_id}/audit", response_model=list[AuditLogEntry])
def get_payment_audit_trail(
    payment_id: str,
    db: Session = Depends(get_db),
    _admin: AuthenticatedUser = Depends(require_admin),
):
    """Get the audit trail for a payment's gateway authority."""
    payment = db.query(PaymentRecord).filter(PaymentRecord.id == payment_id).first()
    if not payment:
        raise HTTPException(status_code=404, detail="Payment not found")
    if not payment.authority:
        return []
    return AuditService.get_trail(db, payment.authority)


@router.get("/audit/{authority}/verify")
def verify_audit_chain(
    authority: str,
    db: Session = Depends(get_db),
    _admin: AuthenticatedUser = Depends(require_admin),
):
    """Verify the integrity of the audit hash chain for an authority."""
    return AuditService.verify_chain(db, authority)
