"""
PostgreSQL Database Models - SQLAlchemy ORM
Users and RDQ tables
"""
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import (
    Integer, String, Text, DateTime, Boolean, ForeignKey, Index
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .connection import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ==================== USER MODEL ====================

class User(Base):
    """User table - accounts, roles and the manager tree"""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    manager_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    department: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    phone_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    manager: Mapped[Optional["User"]] = relationship("User", remote_side=[id], lazy="raise")

    __table_args__ = (
        Index('idx_users_role_created_at', 'role', 'created_at'),
    )


# ==================== RDQ MODEL ====================

class Rdq(Base):
    """Resource request - the record driven by the approval workflow"""
    __tablename__ = "rdq"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    priority: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="DRAFT", index=True)
    justification: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    manager_comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    requested_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    owner: Mapped[User] = relationship("User", lazy="raise")

    __table_args__ = (
        Index('idx_rdq_user_created_at', 'user_id', 'created_at'),
        Index('idx_rdq_status_created_at', 'status', 'created_at'),
        Index('idx_rdq_type_priority', 'type', 'priority'),
    )
