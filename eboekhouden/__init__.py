"""Accounting provider backed by the e-Boekhouden SOAP API."""

from eboekhouden.accounting_provider import AccountingProvider, get_provider
from eboekhouden.client import EboekhoudenClient, RemoteAccountingClient
from eboekhouden.errors import (
    AccountingError,
    AuthenticationError,
    RemoteOperationError,
    SoapFaultError,
)

__all__ = [
    "AccountingError",
    "AccountingProvider",
    "AuthenticationError",
    "EboekhoudenClient",
    "RemoteAccountingClient",
    "RemoteOperationError",
    "SoapFaultError",
    "get_provider",
]
