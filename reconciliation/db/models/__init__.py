"""Database models."""

from reconciliation.db.models.base import Base
from reconciliation.db.models.contact import Contact

__all__ = [
    "Base",
    "Contact",
]
