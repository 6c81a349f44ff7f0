"""
Merchants module.

Merchant directory plus the report-recipient predicate used by the
inventory report dispatch.
"""

from . import models  # noqa: F401
