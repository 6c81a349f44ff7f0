# backend/invdb/__init__.py
"""
Import ORM models from each app so that Base.metadata.create_all() sees
every table.

The actual model classes are kept in invdb/apps/*/models.py.
"""

from .apps.accounts import models as accounts_models          # roles / users
from .apps.inventory import models as inventory_models        # inventory items
from .apps.merchants import models as merchants_models        # report recipients
from .apps.reports import models as reports_models            # saved reports
from .apps.notifications import models as notifications_models  # email queue

__all__ = [
    "accounts_models",
    "inventory_models",
    "merchants_models",
    "reports_models",
    "notifications_models",
]
