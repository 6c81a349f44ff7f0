from __future__ import annotations

from sqlalchemy import Column, DateTime, Integer, Numeric, String, Text, func

from invdb.database import Base


class InventoryItem(Base):
    __tablename__ = "inventory"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    # Numeric columns come back as Decimal (or str on some drivers);
    # report code must convert explicitly.
    quantity = Column(Numeric(10, 2), nullable=False, default=0)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    sku = Column(String(64), nullable=True, index=True)
    category = Column(String(128), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    def __repr__(self) -> str:
        return f"<InventoryItem id={self.id} name={self.name}>"
