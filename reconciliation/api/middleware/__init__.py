"""API middleware modules."""

from .request_id import RequestIDMiddleware

__all__ = [
    "RequestIDMiddleware",
]
