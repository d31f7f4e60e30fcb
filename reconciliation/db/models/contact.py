"""
Contact Database Model

One row per observed (email, phone number) combination. Rows form star-shaped
clusters: a single primary plus secondaries whose `linked_id` points at it.
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
)

from reconciliation.db.models.base import Base
from reconciliation.kernel.time import utc_now


class Contact(Base):
    __tablename__ = "contact"

    id = Column(Integer, primary_key=True, autoincrement=True)

    email = Column(Text, nullable=True, index=True)
    phone_number = Column(Text, nullable=True, index=True)

    # Secondaries only; always the cluster's current primary (depth 1).
    linked_id = Column(Integer, ForeignKey("contact.id"), nullable=True, index=True)
    link_precedence = Column(Text, nullable=False, default="primary")  # primary, secondary

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "link_precedence IN ('primary', 'secondary')",
            name="contact_link_precedence_check",
        ),
        Index("idx_contact_created", "created_at", "id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Contact(id={self.id}, email={self.email!r}, "
            f"phone_number={self.phone_number!r}, precedence={self.link_precedence})>"
        )
