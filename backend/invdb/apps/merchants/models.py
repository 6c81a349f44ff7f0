from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, func

from invdb.database import Base


class Merchant(Base):
    """
    A merchant that may receive inventory summary emails.

    A merchant is an eligible report recipient only while both `is_active`
    and `receive_reports` are true; see `eligible_for_reports()`.
    """

    __tablename__ = "merchants"
    __table_args__ = (
        Index("ix_merchants_active_reports", "is_active", "receive_reports"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(64), nullable=False, default="")
    address = Column(String(512), nullable=False, default="")
    city = Column(String(128), nullable=True)
    country = Column(String(128), nullable=True)
    zip_code = Column(String(32), nullable=True)
    business_license = Column(String(128), nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    receive_reports = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    def eligible_for_reports(self) -> bool:
        return bool(self.is_active) and bool(self.receive_reports)

    def __repr__(self) -> str:
        return f"<Merchant id={self.id} email={self.email}>"
