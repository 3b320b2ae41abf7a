"""Translate local records into e-Boekhouden request bodies.

The remote schema requires every field to be present, so unused fields are
sent blank or zero. Direct debit invoicing and the banking fields of a
relation are not supported and always go out disabled.
"""

from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from eboekhouden.models import MAX_EXTRA_FIELDS, MutationFilter, Relation, WorkOrder
from eboekhouden.settings import Settings

HOUR_UNIT = "Uur"
HOUR_CODE = "1"
PRODUCT_UNIT = "Stuk"
UNSIGNED_MANDATE_DATE = datetime(1970, 1, 1, 0, 0, 0)


def round_price(value: float) -> float:
    """Round half up to cents, the way the invoice totals are rounded remotely."""
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _invoice_lines(work: WorkOrder) -> list[dict[str, Any]]:
    shared = {
        "BTWCode": work.tax_code,
        "TegenrekeningCode": str(work.ledger_code),
        "KostenplaatsID": 0,
    }
    lines: list[dict[str, Any]] = []
    for hour in work.hours:
        lines.append(
            {
                "Aantal": hour.hours,
                "Eenheid": HOUR_UNIT,
                "Code": HOUR_CODE,
                "Omschrijving": f"Gewerkte uren, {hour.work_date:%d-%m-%Y}",
                "PrijsPerEenheid": hour.price_per_hour,
                **shared,
            }
        )
    for product in work.products:
        lines.append(
            {
                "Aantal": product.amount,
                "Eenheid": PRODUCT_UNIT,
                "Code": product.code,
                "Omschrijving": product.description,
                "PrijsPerEenheid": round_price(product.sell_price_per_one),
                **shared,
            }
        )
    return lines


def build_invoice_payload(
    work: WorkOrder, config: Settings, *, issued_at: Optional[datetime] = None
) -> dict[str, Any]:
    """Build the ``oFact`` body of ``AddFactuur``.

    Hour lines come first, then product lines, each group in input order.
    """
    payment_term = work.payment_term if work.payment_term is not None else config.payment_term
    return {
        "Factuurnummer": str(work.invoice_number),
        "Relatiecode": str(work.relation_code),
        "Datum": issued_at or datetime.now(),
        "Betalingstermijn": payment_term,
        "Factuursjabloon": work.invoice_template or config.invoice_template,
        "PerEmailVerzenden": 0,
        "EmailOnderwerp": "",
        "EmailBericht": "",
        "EmailVanAdres": config.email_from_address,
        "EmailVanNaam": config.email_from_name,
        "AutomatischeIncasso": 0,
        "IncassoIBAN": "",
        "IncassoMachtigingSoort": "",
        "IncassoMachtigingID": "",
        "IncassoMachtigingDatumOndertekening": UNSIGNED_MANDATE_DATE,
        "IncassoMachtigingFirst": 0,
        "IncassoRekeningNummer": "",
        "IncassoTnv": "",
        "IncassoPlaats": "",
        "IncassoOmschrijvingRegel1": "",
        "IncassoOmschrijvingRegel2": "",
        "IncassoOmschrijvingRegel3": "",
        "InBoekhoudingPlaatsen": 1,
        "BoekhoudmutatieOmschrijving": work.description,
        "Regels": {"cFactuurRegel": _invoice_lines(work)},
    }


def build_relation_payload(relation: Relation) -> dict[str, Any]:
    """Build the ``oRel`` body shared by ``AddRelatie`` and ``UpdateRelatie``."""
    extra = list(relation.extra_fields) + [""] * (MAX_EXTRA_FIELDS - len(relation.extra_fields))
    payload: dict[str, Any] = {
        # 0 asks the remote side for a new identity
        "ID": 0 if relation.is_new else relation.id,
        "AddDatum": datetime.combine(relation.added_on, datetime.min.time()),
        "Code": relation.code,
        "Bedrijf": relation.company,
        "Contactpersoon": relation.contact_person or "",
        "Geslacht": relation.gender or "",
        "Adres": relation.address or "",
        "Postcode": relation.postal_code or "",
        "Plaats": relation.city or "",
        "Land": relation.country or "",
        "Adres2": "",
        "Postcode2": "",
        "Plaats2": "",
        "Land2": "",
        "Telefoon": relation.phone or "",
        "GSM": relation.mobile or "",
        "FAX": "",
        "Email": relation.email or "",
        "Site": relation.website or "",
        "Notitie": relation.notes or "",
        "Bankrekening": "",
        "Girorekening": "",
        "BTWNummer": relation.vat_number or "",
        "Aanhef": "",
        "IBAN": "",
        "BIC": "",
        "BP": "",
    }
    for index, value in enumerate(extra, start=1):
        payload[f"Def{index}"] = value or ""
    payload.update({"LA": "", "Gb_ID": 0, "GeenEmail": 0, "NieuwsbriefgroepenCount": 0})
    return payload


def build_mutation_filter(mutation_filter: MutationFilter) -> dict[str, Any]:
    """Build the ``cFilter`` of ``GetMutaties``.

    Only the mutation number and the date range are supported; the number
    range and the invoice number stay neutral.
    """
    date_from, date_to = mutation_filter.resolved_range()
    return {
        "MutatieNr": mutation_filter.mutation_number,
        "MutatieNrVan": 0,
        "MutatieNrTm": 0,
        "Factuurnummer": "",
        "DatumVan": date_from,
        "DatumTm": date_to,
    }
