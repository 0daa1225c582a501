"""
Profile & Role Models — Rows owned by the hosted auth/profile screens.
Read here only to resolve contact details and admin access.
"""
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime

from solar_portal.database import Base


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    user_id = Column(String(36), unique=True, nullable=False, index=True)

    display_name = Column(String(128))
    phone = Column(String(20))

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class UserRole(Base):
    __tablename__ = "user_roles"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    user_id = Column(String(36), nullable=False, index=True)
    role = Column(String(16), nullable=False, default="user")  # admin | user

    created_at = Column(DateTime, default=datetime.utcnow)
