"""
Electricity Package & Purchase Models — Catalogue rows and the user's package purchases.
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship

from solar_portal.database import Base

PURCHASE_ACTIVE = "completed"


def _new_id() -> str:
    return str(uuid.uuid4())


class ElectricityPackage(Base):
    __tablename__ = "electricity_packages"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(128), nullable=False)
    description = Column(Text)

    kwh_amount = Column(Integer, nullable=False)
    duration_months = Column(Integer, nullable=False)
    price = Column(Integer, nullable=False)
    active = Column(Boolean, default=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Purchase(Base):
    __tablename__ = "purchases"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), nullable=False, index=True)
    package_id = Column(String(36), ForeignKey("electricity_packages.id"), nullable=False)

    amount = Column(Integer, nullable=False)
    status = Column(String(16), default="pending")  # pending | completed | expired

    payment_date = Column(DateTime)
    expiry_date = Column(DateTime)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    package = relationship(ElectricityPackage, lazy="joined")
