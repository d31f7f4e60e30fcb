"""
Contact Identity Reconciliation

Links partial contact observations (email and/or phone number) into clusters
rooted at the oldest primary contact, merging clusters when an observation
bridges them.
"""

from .merger import merge
from .resolver import resolve
from .service import identify
from .store import ContactStore, SQLContactStore, get_contact_store
from .types import (
    ClusterResolution,
    ConsolidatedView,
    ContactRecord,
    LinkPrecedence,
    MultiCluster,
    NoMatch,
    SingleCluster,
)
from .updater import has_new_information, update
from .view import project

__all__ = [
    "identify",
    "resolve",
    "update",
    "merge",
    "project",
    "has_new_information",
    "ContactStore",
    "SQLContactStore",
    "get_contact_store",
    "ClusterResolution",
    "ConsolidatedView",
    "ContactRecord",
    "LinkPrecedence",
    "MultiCluster",
    "NoMatch",
    "SingleCluster",
]
