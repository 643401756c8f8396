"""
auth/models.py -- Domain dataclass for admin credentials.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in content/models.py -- dataclasses own domain shape; stores and routes do the work.

Layer rule: no imports from api/, web/, core/, or content/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Admin:
    """A provisioned back-office account.

    Admins are created out-of-band (python main.py create-admin) and are never
    edited from the UI. email is stored normalized (trimmed, lowercase) so the
    login lookup is case-insensitive.
    """

    email: str
    name: str
    hashed_password: str
    id: int | None = None
    created_at: str | None = None
    last_login: str | None = None
