"""Exceptions raised by the accounting provider."""

from __future__ import annotations


class AccountingError(Exception):
    """Base class for every failure reported by an accounting provider."""


class AuthenticationError(AccountingError):
    """No session could be opened with the configured credentials."""


class RemoteOperationError(AccountingError):
    """The remote side reported a failure for a named operation."""

    def __init__(self, message: str, *, operation: str | None = None, code: str | None = None):
        super().__init__(message)
        self.operation = operation
        self.code = code


class SoapFaultError(RemoteOperationError):
    """Transport level failure: a SOAP fault or an HTTP error status."""


class TransportError(AccountingError):
    """The service description could not be loaded or understood."""
