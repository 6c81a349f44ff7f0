"""
Reports module.

Saved reports (title + selected inventory items) and the inventory summary
email pipeline: content rendering, dispatch to merchants and the weekday
schedule.
"""

from . import models  # noqa: F401
