# backend/invdb/apps/accounts/models.py
"""
Accounts models: roles and users.

Roles are keyed by a short `alias` (e.g. "admin", "viewer") so tokens and
routers can refer to them without an extra lookup. Users are soft-deleted via
`deleted_at`; every read path filters those rows out.
"""

from __future__ import annotations

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from invdb.database import Base

DEFAULT_ROLE_ALIAS = "viewer"
ADMIN_ROLE_ALIAS = "admin"
MANAGER_ROLE_ALIAS = "manager"


class Role(Base):
    __tablename__ = "roles"

    alias = Column(String(50), primary_key=True)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    users = relationship(
        "User",
        primaryjoin="and_(Role.alias == User.role_alias, User.deleted_at.is_(None))",
        viewonly=True,
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Role alias={self.alias}>"


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        Index("idx_users_role_active", "role_alias", "is_active"),
    )

    id = Column(Integer, primary_key=True, index=True)

    username = Column(String(100), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)

    role_alias = Column(
        String(50),
        ForeignKey("roles.alias", ondelete="SET NULL", onupdate="CASCADE"),
        nullable=True,
        index=True,
    )
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    role = relationship(
        "Role",
        primaryjoin="Role.alias == User.role_alias",
        foreign_keys=[role_alias],
        lazy="joined",
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username}>"
