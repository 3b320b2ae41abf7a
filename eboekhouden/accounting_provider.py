from __future__ import annotations
from abc import ABC, abstractmethod
from importlib import import_module
from typing import Any, Optional

from eboekhouden.models import MutationFilter, Relation, WorkOrder
from eboekhouden.settings import settings

DEFAULT_PROVIDER = "eboekhouden.client:EboekhoudenClient"


class AccountingProvider(ABC):
    """Base class for every bookkeeping backend."""

    @abstractmethod
    def list_relations(self) -> list[dict[str, Any]]:
        """Return all relations as raw remote records."""
        raise NotImplementedError

    @abstractmethod
    def create_relation(self, relation: Relation) -> Relation:
        """Create ``relation`` remotely and return it with its new id."""
        raise NotImplementedError

    @abstractmethod
    def update_relation(self, relation: Relation) -> Relation:
        raise NotImplementedError

    @abstractmethod
    def list_ledgers(self) -> list[dict[str, Any]]:
        """Return the chart of accounts as raw remote records."""
        raise NotImplementedError

    @abstractmethod
    def list_mutations(
        self, mutation_filter: Optional[MutationFilter] = None
    ) -> list[dict[str, Any]]:
        raise NotImplementedError

    @abstractmethod
    def create_invoice(self, work: WorkOrder) -> str:
        """Create an invoice and return its invoice number."""
        raise NotImplementedError


def _load_provider(path: Optional[str]) -> AccountingProvider:
    """Load a provider class from ``module:Class`` and instantiate it."""
    module_name, class_name = (path or DEFAULT_PROVIDER).split(":")
    module = import_module(module_name)
    provider_cls = getattr(module, class_name)
    if not isinstance(provider_cls, type) or not issubclass(provider_cls, AccountingProvider):
        raise TypeError("Provider must inherit from AccountingProvider")
    return provider_cls()


_provider: Optional[AccountingProvider] = None


def get_provider() -> AccountingProvider:
    """Return the process wide provider, created on first use."""
    global _provider
    if _provider is None:
        _provider = _load_provider(settings.accounting_provider)
    return _provider
