"""
Payment Audit Log Model — Append-only, tamper-evident payment trail.
Every lifecycle action is SHA-256 hashed and timestamped.
"""
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, JSON

from solar_portal.database import Base


class PaymentAuditLog(Base):
    __tablename__ = "payment_audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)

    # Keyed by authority (not a foreign key) so the trail outlives a deleted payment
    authority = Column(String(64), nullable=False, index=True)
    user_id = Column(String(36), index=True)

    action = Column(String(50), nullable=False)
    # Actions: PAYMENT_REQUESTED, PAYMENT_CANCELLED, PAYMENT_VERIFIED,
    #          PAYMENT_FAILED, PAYMENT_DELETED

    payload_hash = Column(String(64))       # SHA-256 chain hash of the action payload
    previous_hash = Column(String(64))

    ip_address = Column(String(45))
    user_agent = Column(String(256))

    log_metadata = Column(JSON, default=dict)
    timestamp = Column(DateTime, default=datetime.utcnow)
