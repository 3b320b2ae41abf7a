"""e-Boekhouden implementation of :class:`AccountingProvider`.

Every public operation opens a session on first use, sends one SOAP call and
checks the ``ErrorMsg`` of the result envelope before reading any field.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional
from uuid import uuid4

from eboekhouden.accounting_provider import AccountingProvider
from eboekhouden.errors import AuthenticationError, SoapFaultError, TransportError
from eboekhouden.models import Ledger, Mutation, MutationFilter, Relation, WorkOrder
from eboekhouden.payloads import (
    build_invoice_payload,
    build_mutation_filter,
    build_relation_payload,
)
from eboekhouden.request_id import request_id_ctx_var
from eboekhouden.results import check_error, dig, ensure_list, interpret
from eboekhouden.settings import Settings, settings as default_settings
from eboekhouden.soap import SoapTransport

logger = logging.getLogger(__name__)

TransportFactory = Callable[..., Any]


class EboekhoudenClient(AccountingProvider):
    """Talks to the e-Boekhouden SOAP API with one session per instance."""

    def __init__(
        self,
        config: Optional[Settings] = None,
        *,
        transport_factory: Optional[TransportFactory] = None,
    ) -> None:
        self.config = config or default_settings
        self._transport_factory = transport_factory or SoapTransport.from_wsdl
        self._transport: Any = None
        self.session_id: Optional[str] = None
        self._session_lock = threading.Lock()

    @property
    def _security_code2(self) -> str:
        return self.config.security_code2.get_secret_value()

    def ensure_session(self) -> None:
        """Open a session unless one is already held."""
        with self._session_lock:
            if self._transport is not None and self.session_id:
                return

            try:
                transport = self._transport_factory(
                    self.config.wsdl, timeout=self.config.http_timeout
                )
            except TransportError as exc:
                raise AuthenticationError(str(exc)) from exc

            try:
                session_id = self._open_session(transport)
            except Exception:
                transport.close()
                raise

            self._transport = transport
            self.session_id = session_id
            logger.info("Opened e-Boekhouden session")

    def _open_session(self, transport: Any) -> str:
        token = request_id_ctx_var.set(uuid4().hex[:8])
        try:
            response = transport.call(
                "OpenSession",
                {
                    "Username": self.config.username,
                    "SecurityCode1": self.config.security_code1.get_secret_value(),
                    "SecurityCode2": self._security_code2,
                },
            )
        except SoapFaultError as exc:
            raise AuthenticationError(str(exc)) from exc
        finally:
            request_id_ctx_var.reset(token)

        result = interpret("OpenSession", response)
        if not result.ok:
            raise AuthenticationError(
                result.error_description or f"OpenSession failed ({result.error_code})"
            )
        session_id = dig(result.payload, "SessionID")
        if not session_id:
            raise AuthenticationError("OpenSession returned no session id")
        return session_id

    def close(self) -> None:
        """Drop the session and release the transport."""
        with self._session_lock:
            if self._transport is not None:
                self._transport.close()
            self._transport = None
            self.session_id = None

    def __enter__(self) -> "EboekhoudenClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _call(
        self, operation: str, body: dict[str, Any], *, allow_missing: bool = False
    ) -> dict[str, Any]:
        """Send an authenticated operation and return its checked result envelope."""
        self.ensure_session()
        params = {
            "SessionID": self.session_id,
            "SecurityCode2": self._security_code2,
            **body,
        }
        token = request_id_ctx_var.set(uuid4().hex[:8])
        try:
            logger.debug("Calling %s", operation)
            response = self._transport.call(operation, params)
            return check_error(operation, response, allow_missing=allow_missing)
        finally:
            request_id_ctx_var.reset(token)

    def list_relations(self) -> list[dict[str, Any]]:
        result = self._call(
            "GetRelaties", {"cFilter": {"Trefwoord": "", "Code": "", "ID": 0}}
        )
        return ensure_list(dig(result, "Relaties", "cRelatie"))

    def create_relation(self, relation: Relation) -> Relation:
        result = self._call("AddRelatie", {"oRel": build_relation_payload(relation)})
        new_id = int(dig(result, "Rel_ID") or 0)
        logger.info("Created relation %s with id %d", relation.code, new_id)
        return relation.model_copy(update={"id": new_id})

    def update_relation(self, relation: Relation) -> Relation:
        # The remote side does not report anything new on update.
        self._call("UpdateRelatie", {"oRel": build_relation_payload(relation)})
        return relation

    def list_ledgers(self) -> list[dict[str, Any]]:
        result = self._call(
            "GetGrootboekrekeningen",
            {"cFilter": {"ID": "", "Code": "", "Categorie": ""}},
        )
        return ensure_list(dig(result, "Rekeningen", "cGrootboekrekening"))

    def list_mutations(
        self, mutation_filter: Optional[MutationFilter] = None
    ) -> list[dict[str, Any]]:
        mutation_filter = mutation_filter or MutationFilter()
        # No mutation list at all, or no result envelope, means nothing matched.
        result = self._call(
            "GetMutaties",
            {"cFilter": build_mutation_filter(mutation_filter)},
            allow_missing=True,
        )
        return ensure_list(dig(result, "Mutaties", "cMutatieList"))

    def create_invoice(self, work: WorkOrder) -> str:
        result = self._call(
            "AddFactuur", {"oFact": build_invoice_payload(work, self.config)}
        )
        invoice_number = str(dig(result, "Factuurnummer") or "")
        logger.info("Created invoice %s", invoice_number)
        return invoice_number

    def relations(self) -> list[Relation]:
        return [Relation.from_remote(raw) for raw in self.list_relations()]

    def ledgers(self) -> list[Ledger]:
        return [Ledger.from_remote(raw) for raw in self.list_ledgers()]

    def mutations(self, mutation_filter: Optional[MutationFilter] = None) -> list[Mutation]:
        return [Mutation.from_remote(raw) for raw in self.list_mutations(mutation_filter)]


RemoteAccountingClient = EboekhoudenClient
