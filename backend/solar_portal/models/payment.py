"""
Payment Record Model — Tracks ZarinPal payment attempts.
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime

from solar_portal.database import Base

STATUS_PENDING = "pending"
STATUS_SUCCESS = "success"
STATUS_COMPLETED = "completed"  # legacy rows written by the admin console
STATUS_CANCELLED = "cancelled"
STATUS_FAILED = "failed"

TERMINAL_STATUSES = frozenset({STATUS_SUCCESS, STATUS_COMPLETED, STATUS_CANCELLED, STATUS_FAILED})
PAID_STATUSES = frozenset({STATUS_SUCCESS, STATUS_COMPLETED})


def _new_id() -> str:
    return str(uuid.uuid4())


class PaymentRecord(Base):
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), nullable=False, index=True)

    amount = Column(Integer, nullable=False)      # Gateway minor unit
    description = Column(String(255), nullable=False)

    authority = Column(String(64), unique=True, index=True)
    ref_id = Column(String(64))                   # Set only on confirmed success

    # Status tracking
    status = Column(String(16), nullable=False, default=STATUS_PENDING)  # pending | success | cancelled | failed

    mobile = Column(String(20))
    email = Column(String(255))

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
