from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import relationship

from invdb.database import Base


class Report(Base):
    """A saved selection of inventory items."""

    __tablename__ = "reports"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    item_links = relationship(
        "ReportInventoryItem",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ReportInventoryItem.id",
    )

    @property
    def inventory_items(self):
        return [
            link.inventory_item
            for link in self.item_links
            if link.inventory_item is not None and link.inventory_item.deleted_at is None
        ]

    def __repr__(self) -> str:
        return f"<Report id={self.id} title={self.title}>"


class ReportInventoryItem(Base):
    __tablename__ = "report_inventory"
    __table_args__ = (
        UniqueConstraint("report_id", "inventory_id", name="uq_report_inventory"),
    )

    id = Column(Integer, primary_key=True)
    report_id = Column(
        Integer,
        ForeignKey("reports.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    inventory_id = Column(
        Integer,
        ForeignKey("inventory.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    inventory_item = relationship("InventoryItem", lazy="joined")
