"""
Notifications module.

Outbound email: the queue table, providers and the delivery worker.
"""

from . import models  # noqa: F401
