"""
Inventory module.

Item master (name, quantity, price) with soft delete.
"""

from . import models  # noqa: F401
