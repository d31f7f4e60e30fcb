"""
Identity Reconciliation Type Definitions

Types shared by the resolver, updater, merger and view builder.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class LinkPrecedence(str, Enum):
    """Role of a contact row inside its cluster."""

    PRIMARY = "primary"
    SECONDARY = "secondary"


class ContactRecord(BaseModel):
    """A persisted contact row, detached from any DB session."""

    model_config = ConfigDict(frozen=True)

    id: int
    email: str | None = None
    phone_number: str | None = None
    linked_id: int | None = None
    link_precedence: LinkPrecedence
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None

    @property
    def is_primary(self) -> bool:
        return self.link_precedence == LinkPrecedence.PRIMARY

    @property
    def root_id(self) -> int | None:
        """Id of the cluster primary this row belongs to."""
        if self.is_primary:
            return self.id
        return self.linked_id


class ConsolidatedView(BaseModel):
    """Externally visible projection of one cluster."""

    primary_contact_id: int
    emails: list[str] = Field(default_factory=list)
    phone_numbers: list[str] = Field(default_factory=list)
    secondary_contact_ids: list[int] = Field(default_factory=list)


# Resolution outcomes -------------------------------------------------------


@dataclass(frozen=True, slots=True)
class NoMatch:
    """No live contact shares the observation's email or phone."""


@dataclass(frozen=True, slots=True)
class SingleCluster:
    root_id: int


@dataclass(frozen=True, slots=True)
class MultiCluster:
    """Two or more clusters matched; order is irrelevant, the merger sorts by age."""

    root_ids: tuple[int, ...]


ClusterResolution = NoMatch | SingleCluster | MultiCluster
