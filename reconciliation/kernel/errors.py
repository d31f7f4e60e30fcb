from __future__ import annotations

import re
from typing import Any


_ERROR_CODE_RE = re.compile(r"^[a-z][a-z0-9_]*(\.[a-z][a-z0-9_]*)*$")


class ReconciliationError(Exception):
    """Base typed error for the reconciliation service.

    - Stable `code` for programmatic handling by API clients.
    - Human-readable `message`.
    - Optional `meta` payload (safe-to-expose only).
    """

    def __init__(
        self,
        *,
        code: str,
        message: str,
        status_code: int = 500,
        meta: dict[str, Any] | None = None,
    ) -> None:
        if not _ERROR_CODE_RE.fullmatch(code):
            raise ValueError(
                "Invalid error code. Expected dot-separated lowercase tokens, "
                f"got: {code!r}"
            )
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = int(status_code)
        self.meta = dict(meta or {})

    def to_public_dict(self, *, request_id: str | None) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "detail": self.message,
            "code": self.code,
        }
        if request_id:
            payload["request_id"] = request_id
        if self.meta:
            payload["meta"] = self.meta
        return payload


class InvalidInputError(ReconciliationError):
    def __init__(
        self,
        *,
        message: str = "At least one of email or phoneNumber must be provided.",
        code: str = "request.invalid_input",
        meta: dict[str, Any] | None = None,
    ):
        super().__init__(code=code, message=message, status_code=400, meta=meta)


class PersistenceError(ReconciliationError):
    """Any failure of the contact store: read, insert, bulk update or transaction."""

    def __init__(
        self,
        *,
        message: str = "Contact store error",
        code: str = "persistence.error",
        meta: dict[str, Any] | None = None,
        status_code: int = 503,
    ):
        super().__init__(code=code, message=message, status_code=status_code, meta=meta)
