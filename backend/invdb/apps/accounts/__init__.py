# backend/invdb/apps/accounts/__init__.py
"""
Accounts app

Responsible for:
- Roles (keyed by alias) and user accounts
- Public auth endpoints (register, login)
- Admin endpoints (manage users and roles)

Keep this import light: `invdb.security` imports the models from here, and
the services import `invdb.security`.
"""

from . import models  # noqa: F401

__all__ = ["models"]
