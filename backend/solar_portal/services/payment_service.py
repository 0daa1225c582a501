"""
Payment Service — ZarinPal request/verify lifecycle for payment records.

Lifecycle: pending -> success | cancelled | failed. Every status write is a
compare-and-set against the status the caller observed, so two verifications
racing on one authority cannot both apply.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from solar_portal.config import get_settings
from solar_portal.exceptions import (
    PaymentNotFoundError, PaymentStateError, PaymentValidationError, PersistenceError,
)
from solar_portal.models.payment import (
    PaymentRecord, PAID_STATUSES, STATUS_CANCELLED, STATUS_FAILED, STATUS_PENDING, STATUS_SUCCESS,
)
from solar_portal.models.profile import Profile
from solar_portal.models.purchase import PURCHASE_ACTIVE, Purchase
from solar_portal.services.audit_service import AuditService
from solar_portal.services.auth_service import AuthenticatedUser
from solar_portal.services.zarinpal import CANCELLED_STATUS_FLAG, ZarinpalClient
from solar_portal.utils.logger import get_logger
from solar_portal.utils.validators import normalize_mobile, validate_payment_fields

logger = get_logger(__name__)

CALLBACK_PATH = "/payment-callback"

MESSAGES = {
    STATUS_SUCCESS: "Payment completed successfully",
    STATUS_CANCELLED: "Payment was cancelled by the user",
    STATUS_FAILED: "Payment failed",
}


class PaymentService:
    """Creates and verifies gateway payments for an authenticated user."""

    # ─── Initiator ───────────────────────────────────────────────────

    @staticmethod
    def request_payment(
        db: Session,
        gateway: ZarinpalClient,
        user: AuthenticatedUser,
        amount: Optional[int],
        description: Optional[str],
        mobile: Optional[str] = None,
        email: Optional[str] = None,
        origin: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> dict:
        """Open a gateway payment and store it as pending.

        Returns:
            dict with 'payment_url', 'authority' and the stored 'payment'.

        Raises:
            PaymentValidationError: amount or description missing/invalid.
            GatewayError: the gateway refused the request or was unreachable.
            PersistenceError: the gateway accepted but the record could not be stored.
        """
        settings = get_settings()

        ok, reason = validate_payment_fields(amount, description)
        if not ok:
            raise PaymentValidationError(reason)
        description = description.strip()

        contact_mobile = PaymentService.resolve_mobile(db, user.user_id, mobile)
        contact_email = email or user.email or ""
        callback_url = f"{(origin or settings.FRONTEND_URL).rstrip('/')}{CALLBACK_PATH}"

        logger.info(f"Creating payment for user {user.user_id}, amount: {amount}")
        result = gateway.request_payment(
            amount=amount,
            description=description,
            callback_url=callback_url,
            mobile=contact_mobile,
            email=contact_email,
        )

        payment = PaymentService._persist_pending(
            db,
            user_id=user.user_id,
            amount=amount,
            description=description,
            authority=result.authority,
            mobile=contact_mobile or None,
            email=contact_email or None,
        )

        PaymentService._audit(
            db, result.authority, "PAYMENT_REQUESTED",
            user_id=user.user_id,
            payload={"amount": amount, "description": description, "payment_id": payment.id},
            ip_address=ip_address,
            user_agent=user_agent,
            metadata={"callback_url": callback_url},
        )

        return {
            "payment_url": gateway.start_pay_url(result.authority),
            "authority": result.authority,
            "payment": payment,
        }

    @staticmethod
    def resolve_mobile(db: Session, user_id: str, mobile: Optional[str]) -> str:
        """Body value, else the stored profile phone, else the configured fallback (may be empty)."""
        if mobile and mobile.strip():
            return normalize_mobile(mobile)

        profile = db.query(Profile).filter(Profile.user_id == user_id).first()
        if profile and profile.phone:
            return normalize_mobile(profile.phone)

        return get_settings().PAYMENT_FALLBACK_MOBILE or ""

    @staticmethod
    def _persist_pending(db: Session, **fields) -> PaymentRecord:
        """Insert the pending record, retrying without duplicating a row that already landed."""
        attempts = max(1, get_settings().PAYMENT_RECORD_INSERT_ATTEMPTS)
        authority = fields["authority"]

        for attempt in range(1, attempts + 1):
            try:
                payment = PaymentRecord(status=STATUS_PENDING, **fields)
                db.add(payment)
                db.commit()
                db.refresh(payment)
                logger.info(f"Payment record {payment.id} stored for authority {authority}")
                return payment
            except SQLAlchemyError as e:
                db.rollback()
                logger.warning(f"Insert attempt {attempt}/{attempts} failed for authority {authority}: {e}")

                existing = (
                    db.query(PaymentRecord)
                    .filter(PaymentRecord.authority == authority, PaymentRecord.user_id == fields["user_id"])
                    .first()
                )
                if existing is not None:
                    if existing.status == STATUS_PENDING:
                        return existing
                    logger.error(f"Authority {authority} already belongs to a settled payment ({existing.status})")
                    break

        logger.error(
            f"ORPHANED GATEWAY TRANSACTION: authority {authority} for user {fields['user_id']} "
            f"(amount {fields['amount']}) has no local record"
        )
        raise PersistenceError("Failed to save payment record")

    @staticmethod
    def _audit(db: Session, authority: str, action: str, **kwargs) -> None:
        """Record an audit entry; a failed write is logged and does not fail the payment flow."""
        try:
            AuditService.log(db, authority, action, **kwargs)
        except SQLAlchemyError:
            db.rollback()
            logger.exception(f"Audit write failed for {action} on authority {authority}")

    # ─── Verifier ────────────────────────────────────────────────────

    @staticmethod
    def verify_payment(
        db: Session,
        gateway: ZarinpalClient,
        user: AuthenticatedUser,
        authority: Optional[str],
        status_flag: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> dict:
        """Settle a pending payment from the gateway callback.

        A NOK status flag cancels without contacting the gateway. Otherwise the
        gateway's verify answer decides: codes 100/101 -> success, anything else
        -> failed.

        Raises:
            PaymentValidationError: authority missing.
            PaymentNotFoundError: no record for this authority and user.
            PaymentStateError: record already terminal and re-verification is disabled.
            GatewayError: the gateway could not be reached.
        """
        settings = get_settings()

        if not authority or not authority.strip():
            raise PaymentValidationError("Authority is required")
        authority = authority.strip()

        logger.info(f"Verifying payment for user {user.user_id}, authority: {authority}, status: {status_flag}")

        payment = (
            db.query(PaymentRecord)
            .filter(PaymentRecord.authority == authority, PaymentRecord.user_id == user.user_id)
            .first()
        )
        if not payment:
            raise PaymentNotFoundError("Payment not found")

        if payment.is_terminal and settings.PAYMENT_REJECT_TERMINAL_REVERIFY:
            raise PaymentStateError(f"Payment already {payment.status}")

        observed_status = payment.status

        if status_flag == CANCELLED_STATUS_FLAG:
            new_status, ref_id, gateway_code = STATUS_CANCELLED, payment.ref_id, None
        else:
            result = gateway.verify_payment(amount=payment.amount, authority=authority)
            gateway_code = result.code
            if result.confirmed:
                new_status, ref_id = STATUS_SUCCESS, result.ref_id
            else:
                new_status, ref_id = STATUS_FAILED, None
                logger.warning(f"ZarinPal rejected authority {authority}: code={result.code} {result.errors.describe()}")

        applied = PaymentService.transition(db, payment, observed_status, new_status, ref_id)
        db.refresh(payment)

        if applied:
            action = {
                STATUS_SUCCESS: "PAYMENT_VERIFIED",
                STATUS_CANCELLED: "PAYMENT_CANCELLED",
                STATUS_FAILED: "PAYMENT_FAILED",
            }[new_status]
            PaymentService._audit(
                db, authority, action,
                user_id=user.user_id,
                payload={"from": observed_status, "to": new_status, "ref_id": ref_id, "gateway_code": gateway_code},
                ip_address=ip_address,
                user_agent=user_agent,
            )
        else:
            logger.warning(
                f"Verification for authority {authority} lost a concurrent update; "
                f"returning stored status {payment.status}"
            )

        return PaymentService.outcome(payment)

    @staticmethod
    def transition(
        db: Session,
        payment: PaymentRecord,
        expected_status: str,
        new_status: str,
        ref_id: Optional[str] = None,
    ) -> bool:
        """Compare-and-set the record's status. Returns False when another writer changed it first."""
        try:
            updated = (
                db.query(PaymentRecord)
                .filter(PaymentRecord.id == payment.id, PaymentRecord.status == expected_status)
                .update(
                    {"status": new_status, "ref_id": ref_id, "updated_at": datetime.utcnow()},
                    synchronize_session=False,
                )
            )
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database update error for payment {payment.id}: {e}")
            raise PersistenceError("Failed to update payment record") from e
        return updated == 1

    @staticmethod
    def outcome(payment: PaymentRecord) -> dict:
        """Client-facing result for a record's current status."""
        succeeded = payment.status in PAID_STATUSES
        status = STATUS_SUCCESS if succeeded else payment.status
        return {
            "success": succeeded,
            "status": status,
            "ref_id": payment.ref_id if succeeded else None,
            "amount": payment.amount,
            "description": payment.description,
            "message": MESSAGES.get(status, f"Payment is {status}"),
        }

    # ─── History ─────────────────────────────────────────────────────

    @staticmethod
    def list_for_user(db: Session, user_id: str) -> list[PaymentRecord]:
        return (
            db.query(PaymentRecord)
            .filter(PaymentRecord.user_id == user_id)
            .order_by(PaymentRecord.created_at.desc())
            .all()
        )

    @staticmethod
    def summarize_for_user(db: Session, user_id: str) -> dict:
        rows = (
            db.query(PaymentRecord.status, func.count(PaymentRecord.id), func.coalesce(func.sum(PaymentRecord.amount), 0))
            .filter(PaymentRecord.user_id == user_id)
            .group_by(PaymentRecord.status)
            .all()
        )
        counts = {status: count for status, count, _ in rows}
        return {
            "total_payments": sum(counts.values()),
            "pending_payments": counts.get(STATUS_PENDING, 0),
            "successful_payments": sum(counts.get(s, 0) for s in PAID_STATUSES),
            "total_spent": int(sum(total for status, _, total in rows if status in PAID_STATUSES)),
            "active_purchases": (
                db.query(func.count(Purchase.id))
                .filter(Purchase.user_id == user_id, Purchase.status == PURCHASE_ACTIVE)
                .scalar()
            ),
        }

    @staticmethod
    def list_purchases(db: Session, user_id: str) -> list[Purchase]:
        """Caller's package purchases, newest first, with the package row loaded."""
        return (
            db.query(Purchase)
            .filter(Purchase.user_id == user_id)
            .order_by(Purchase.created_at.desc())
            .all()
        )

    @staticmethod
    def delete_payment(
        db: Session,
        payment_id: str,
        admin_id: str,
        ip_address: Optional[str] = None,
    ) -> None:
        """Administrative removal. The audit trail for the authority is kept."""
        payment = db.query(PaymentRecord).filter(PaymentRecord.id == payment_id).first()
        if not payment:
            raise PaymentNotFoundError("Payment not found")

        authority = payment.authority
        snapshot = {
            "payment_id": payment.id,
            "user_id": payment.user_id,
            "amount": payment.amount,
            "status": payment.status,
        }
        db.delete(payment)
        db.commit()
        logger.info(f"Payment {payment_id} deleted by admin {admin_id}")

        if authority:
            PaymentService._audit(
                db, authority, "PAYMENT_DELETED",
                user_id=admin_id,
                payload=snapshot,
                ip_address=ip_address,
            )
