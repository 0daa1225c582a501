"""
Audit Service — Append-only, hash-chained payment trail keyed by gateway authority.
"""
import hashlib
import json
from datetime import datetime
from typing import Optional, Dict

from sqlalchemy.orm import Session

from solar_portal.models.audit import PaymentAuditLog


def _digest(payload: dict, previous_hash: str) -> str:
    """SHA-256(previous_hash + SHA-256(canonical payload))."""
    canonical = json.dumps(payload, sort_keys=True, default=str).encode("utf-8")
    payload_hash = hashlib.sha256(canonical).hexdigest()
    return hashlib.sha256(f"{previous_hash}{payload_hash}".encode("utf-8")).hexdigest()


class AuditService:
    """Creates tamper-evident audit entries for payment lifecycle actions."""

    @staticmethod
    def log(
        db: Session,
        authority: str,
        action: str,
        user_id: Optional[str] = None,
        payload: Optional[Dict] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        metadata: Optional[Dict] = None,
    ) -> PaymentAuditLog:
        """Append an entry to the authority's chain.

        Args:
            db: Database session.
            authority: Gateway authority the action belongs to.
            action: Action identifier (e.g. PAYMENT_REQUESTED, PAYMENT_VERIFIED).
            user_id: Acting user.
            payload: Data payload to hash.
            ip_address: Client IP.
            user_agent: Client user agent.
            metadata: Additional metadata to store.

        Returns:
            The created PaymentAuditLog entry.
        """
        last_entry = (
            db.query(PaymentAuditLog)
            .filter(PaymentAuditLog.authority == authority)
            .order_by(PaymentAuditLog.id.desc())
            .first()
        )
        previous_hash = last_entry.payload_hash if last_entry else ""

        entry = PaymentAuditLog(
            authority=authority,
            user_id=user_id,
            action=action,
            payload_hash=_digest(payload or {}, previous_hash),
            previous_hash=previous_hash,
            ip_address=ip_address,
            user_agent=user_agent,
            log_metadata=metadata or {},
            timestamp=datetime.utcnow(),
        )

        db.add(entry)
        db.commit()
        db.refresh(entry)

        return entry

    @staticmethod
    def get_trail(db: Session, authority: str) -> list[PaymentAuditLog]:
        return (
            db.query(PaymentAuditLog)
            .filter(PaymentAuditLog.authority == authority)
            .order_by(PaymentAuditLog.id.asc())
            .all()
        )

    @staticmethod
    def verify_chain(db: Session, authority: str) -> dict:
        """Check that every entry links to its predecessor.

        Returns:
            dict with 'valid' (bool), 'total_entries', and 'broken_at' (if invalid).
        """
        entries = AuditService.get_trail(db, authority)

        for i, entry in enumerate(entries):
            expected_prev = entries[i - 1].payload_hash if i > 0 else ""
            if entry.previous_hash != expected_prev:
                return {
                    "valid": False,
                    "total_entries": len(entries),
                    "broken_at": entry.id,
                    "message": f"Chain broken at entry {entry.id} ({entry.action})",
                }

        return {"valid": True, "total_entries": len(entries), "broken_at": None}
