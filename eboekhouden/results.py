"""Interpretation of e-Boekhouden result envelopes.

Every operation answers with ``<Operation>Result`` even when it failed; the
failure is reported in ``ErrorMsg.LastErrorCode`` and
``ErrorMsg.LastErrorDescription``. Lists of one element arrive as a bare
record, so callers always go through :func:`ensure_list`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from eboekhouden.errors import RemoteOperationError

logger = logging.getLogger(__name__)


def dig(data: Any, *keys: str) -> Any:
    """Follow ``keys`` through nested dicts, ``None`` if the path is absent."""
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def ensure_list(value: Any) -> list[Any]:
    """Restore list shape for values the transport collapsed."""
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return value
    return [value]


@dataclass(slots=True)
class RemoteResult:
    """Outcome of one remote operation: payload or error descriptor."""

    operation: str
    payload: dict[str, Any] = field(default_factory=dict)
    error_code: str | None = None
    error_description: str | None = None
    # No <operation>Result element in the response at all
    envelope_missing: bool = False

    @property
    def ok(self) -> bool:
        return not self.error_code

    def unwrap(self, *, allow_missing: bool = False) -> dict[str, Any]:
        """Return the payload or raise :class:`RemoteOperationError`.

        A missing envelope is an error unless ``allow_missing`` is set, in
        which case it reads as an empty payload.
        """
        if self.envelope_missing and not allow_missing:
            raise RemoteOperationError(
                f"No {self.operation}Result in response", operation=self.operation
            )
        if not self.ok:
            raise RemoteOperationError(
                self.error_description or f"{self.operation} failed ({self.error_code})",
                operation=self.operation,
                code=self.error_code,
            )
        return self.payload


def interpret(operation: str, response: dict[str, Any]) -> RemoteResult:
    payload = dig(response, f"{operation}Result")
    if not isinstance(payload, dict):
        # An empty element still counts as present
        if payload != "":
            logger.warning("%s response has no result envelope", operation)
            return RemoteResult(operation, {}, envelope_missing=True)
        payload = {}
    code = dig(payload, "ErrorMsg", "LastErrorCode")
    # "0" counts as no error, like an empty code
    if code in (None, "", "0", 0):
        return RemoteResult(operation, payload)
    description = dig(payload, "ErrorMsg", "LastErrorDescription") or None
    logger.warning("%s reported error %s: %s", operation, code, description)
    return RemoteResult(operation, payload, str(code), description)


def check_error(
    operation: str, response: dict[str, Any], *, allow_missing: bool = False
) -> dict[str, Any]:
    """Raise for an embedded error code, return the result envelope otherwise."""
    return interpret(operation, response).unwrap(allow_missing=allow_missing)
