# backend/invdb/apps/reports/content.py
"""
Inventory summary email content.

`render_inventory_report` is pure: same merchant name and lines in, same
text and HTML out. The HTML is a standalone document with inline styles only,
so it renders without network access.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from html import escape
from typing import Sequence, Union

REPORT_TITLE = "Inventory Summary Report"
SIGNATURE = "Inventory Management System"

Number = Union[int, float, Decimal]

_CELL = "padding: 12px; border-bottom: 1px solid #e0e0e0;"


@dataclass(frozen=True)
class SnapshotLine:
    item_name: str
    remaining_qty: float


@dataclass(frozen=True)
class RenderedReport:
    text: str
    html: str


def format_quantity(value: Number) -> str:
    """
    Natural decimal form: 100 -> "100", 1234.56 -> "1234.56", 0.5 -> "0.5".
    """
    if isinstance(value, Decimal):
        value = float(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return repr(value) if isinstance(value, float) else str(value)


def render_text(merchant_name: str, lines: Sequence[SnapshotLine]) -> str:
    parts = [f"Dear {merchant_name},\n\n", "Here is your inventory summary report:\n\n"]
    for line in lines:
        parts.append(f"{line.item_name}: {format_quantity(line.remaining_qty)} units\n")
    parts.append(f"\n\nBest regards,\n{SIGNATURE}")
    return "".join(parts)


def _row(line: SnapshotLine) -> str:
    return (
        "<tr>"
        f'<td style="{_CELL}">{escape(line.item_name)}</td>'
        f'<td style="{_CELL} text-align: right;">{format_quantity(line.remaining_qty)}</td>'
        "</tr>"
    )


def render_html(merchant_name: str, lines: Sequence[SnapshotLine]) -> str:
    name = escape(merchant_name)
    rows = "\n".join(_row(line) for line in lines)
    return f"""<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>{REPORT_TITLE}</title>
</head>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
<div style="background-color: #f8f9fa; padding: 20px; border-radius: 5px; margin-bottom: 20px;">
<h1 style="color: #2c3e50; margin: 0;">{REPORT_TITLE}</h1>
</div>
<p>Dear {name},</p>
<p>Here is your inventory summary report:</p>
<table style="width: 100%; border-collapse: collapse; margin: 20px 0; background-color: white;">
<thead>
<tr style="background-color: #3498db; color: white;">
<th style="padding: 12px; text-align: left;">Item Name</th>
<th style="padding: 12px; text-align: right;">Remaining Quantity</th>
</tr>
</thead>
<tbody>
{rows}
</tbody>
</table>
<div style="margin-top: 30px; padding-top: 20px; border-top: 2px solid #e0e0e0;">
<p style="color: #7f8c8d; font-size: 14px;">Best regards,<br><strong>{SIGNATURE}</strong></p>
</div>
<div style="margin-top: 20px; padding: 15px; background-color: #f8f9fa; border-radius: 5px; font-size: 12px; color: #7f8c8d;">
<p style="margin: 0;">This is an automated report. Please do not reply to this email.</p>
</div>
</body>
</html>
"""


def render_inventory_report(merchant_name: str, lines: Sequence[SnapshotLine]) -> RenderedReport:
    return RenderedReport(
        text=render_text(merchant_name, lines),
        html=render_html(merchant_name, lines),
    )
