"""Identity reconciliation service.

Consolidates partial contact observations (email and/or phone number) into
linked contact clusters.
"""

__version__ = "0.1.0"
