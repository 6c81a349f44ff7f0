# backend/invdb/apps/reports/dispatch.py
"""
Inventory report dispatch.

`ReportDispatchService` reads the inventory snapshot and the merchant list,
renders one email per recipient and hands the jobs to the email queue. It
never talks to the email provider and never writes inventory or merchants.

Per-merchant sends return a `SendResult` instead of raising, so the router
decides how NOT_FOUND / INELIGIBLE surface to the client. Queue outages
(`QueueUnavailable`) still propagate.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Union

from sqlalchemy.orm import Session

from invdb.apps.inventory import models as inventory_models
from invdb.apps.inventory import services as inventory_services
from invdb.apps.merchants import services as merchant_services
from invdb.apps.notifications.queue import EmailJob, EmailQueue

from . import schemas
from .content import SnapshotLine, render_inventory_report

logger = logging.getLogger(__name__)

REPORT_SUBJECT = "Inventory Summary Report"
INELIGIBLE_REASON = "Merchant is not active or has opted out of reports"


class SendStatus(str, enum.Enum):
    OK = "OK"
    NOT_FOUND = "NOT_FOUND"
    INELIGIBLE = "INELIGIBLE"


@dataclass(frozen=True)
class SendResult:
    status: SendStatus
    merchant_id: int
    recipient: Optional[str] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is SendStatus.OK


@dataclass(frozen=True)
class DispatchSummary:
    total_merchants: int
    queued: int


def coerce_quantity(value: Union[str, int, float, Decimal, None]) -> float:
    """Numeric columns may come back as Decimal or as a decimal string."""
    if value is None:
        return 0.0
    return float(value)


class ReportDispatchService:
    def __init__(self, db: Session, queue: EmailQueue) -> None:
        self.db = db
        self.queue = queue

    def get_inventory_summary(self) -> List[SnapshotLine]:
        """Every live item, name ascending, zero and negative quantities included."""
        rows = (
            inventory_services.live_items(self.db)
            .with_entities(inventory_models.InventoryItem.name, inventory_models.InventoryItem.quantity)
            .order_by(inventory_models.InventoryItem.name.asc())
            .all()
        )
        return [SnapshotLine(item_name=name, remaining_qty=coerce_quantity(qty)) for name, qty in rows]

    def _job_for(self, merchant, lines: List[SnapshotLine]) -> EmailJob:
        content = render_inventory_report(merchant.name, lines)
        return EmailJob(to=merchant.email, subject=REPORT_SUBJECT, text=content.text, html=content.html)

    def send_to_merchant(self, merchant_id: int) -> SendResult:
        merchant = merchant_services.find_merchant(self.db, merchant_id)
        if merchant is None:
            return SendResult(SendStatus.NOT_FOUND, merchant_id, reason=f"Merchant with ID {merchant_id} not found")
        if not merchant.eligible_for_reports():
            return SendResult(SendStatus.INELIGIBLE, merchant_id, recipient=merchant.email, reason=INELIGIBLE_REASON)

        lines = self.get_inventory_summary()
        self.queue.enqueue(self._job_for(merchant, lines))
        logger.info(
            "queued inventory report for merchant",
            extra={"merchant_id": merchant_id, "recipient": merchant.email},
        )
        return SendResult(SendStatus.OK, merchant_id, recipient=merchant.email)

    def send_to_all_eligible_merchants(self) -> DispatchSummary:
        merchants = merchant_services.list_report_recipients(self.db)
        lines = self.get_inventory_summary()

        logger.info(
            "preparing inventory reports",
            extra={"total_merchants": len(merchants), "inventory_items": len(lines)},
        )

        if not lines:
            logger.warning("No inventory items found to report")
            return DispatchSummary(total_merchants=len(merchants), queued=0)

        jobs = [self._job_for(merchant, lines) for merchant in merchants]
        self.queue.enqueue_batch(jobs)

        logger.info("queued inventory reports", extra={"queued": len(jobs)})
        return DispatchSummary(total_merchants=len(merchants), queued=len(jobs))

    def get_stats(self) -> schemas.ReportStats:
        return schemas.ReportStats(
            totalMerchants=merchant_services.count_merchants(self.db),
            activeMerchants=merchant_services.count_report_recipients(self.db),
            inventoryItems=inventory_services.count_items(self.db),
            emailQueue=self.queue.stats(),
        )
