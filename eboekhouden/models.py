"""Local record shapes and their mapping from e-Boekhouden records."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from eboekhouden.results import dig, ensure_list

# Fixed range used when a mutation filter leaves the dates open.
DEFAULT_DATE_FROM = datetime(1970, 1, 1, 0, 0, 0)
DEFAULT_DATE_TO = datetime(2050, 12, 31, 23, 59, 59)

MAX_EXTRA_FIELDS = 10


def _text(raw: dict, key: str) -> str:
    value = raw.get(key)
    return value if isinstance(value, str) else ""


def _number(raw: dict, key: str, default: float = 0.0) -> float:
    value = raw.get(key)
    if value in (None, ""):
        return default
    return float(value)


def _timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


class Relation(BaseModel):
    """A business contact (``cRelatie``)."""

    # Remote identifier; absent or <= 1 means the relation is not known remotely.
    id: Optional[int] = None
    code: str
    company: str
    added_on: date = Field(default_factory=date.today)
    contact_person: Optional[str] = None
    gender: Optional[str] = None
    address: Optional[str] = None
    postal_code: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None
    mobile: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    notes: Optional[str] = None
    vat_number: Optional[str] = None
    iban: Optional[str] = None
    bic: Optional[str] = None
    # Free fields Def1..Def10
    extra_fields: list[str] = Field(default_factory=list)

    @field_validator("extra_fields")
    @classmethod
    def validate_extra_fields(cls, v: list[str]) -> list[str]:
        if len(v) > MAX_EXTRA_FIELDS:
            raise ValueError(f"At most {MAX_EXTRA_FIELDS} extra fields are supported")
        return v

    @property
    def is_new(self) -> bool:
        return self.id is None or self.id <= 1

    @classmethod
    def from_remote(cls, raw: dict[str, Any]) -> "Relation":
        added = _timestamp(raw.get("AddDatum"))
        extra = [_text(raw, f"Def{i}") for i in range(1, MAX_EXTRA_FIELDS + 1)]
        while extra and not extra[-1]:
            extra.pop()
        return cls(
            id=int(raw.get("ID") or 0),
            code=_text(raw, "Code"),
            company=_text(raw, "Bedrijf"),
            added_on=added.date() if added else date.today(),
            contact_person=_text(raw, "Contactpersoon") or None,
            gender=_text(raw, "Geslacht") or None,
            address=_text(raw, "Adres") or None,
            postal_code=_text(raw, "Postcode") or None,
            city=_text(raw, "Plaats") or None,
            country=_text(raw, "Land") or None,
            phone=_text(raw, "Telefoon") or None,
            mobile=_text(raw, "GSM") or None,
            email=_text(raw, "Email") or None,
            website=_text(raw, "Site") or None,
            notes=_text(raw, "Notitie") or None,
            vat_number=_text(raw, "BTWNummer") or None,
            iban=_text(raw, "IBAN") or None,
            bic=_text(raw, "BIC") or None,
            extra_fields=extra,
        )


class Ledger(BaseModel):
    """Chart of accounts entry (``cGrootboekrekening``)."""

    id: int
    code: str
    description: str
    category: str
    group: str = ""

    @classmethod
    def from_remote(cls, raw: dict[str, Any]) -> "Ledger":
        return cls(
            id=int(raw.get("ID") or 0),
            code=_text(raw, "Code"),
            description=_text(raw, "Omschrijving"),
            category=_text(raw, "Categorie"),
            group=_text(raw, "Groep"),
        )


class MutationFilter(BaseModel):
    """Selects mutations by number and/or booking date."""

    # 0 matches every mutation number.
    mutation_number: int = 0
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None

    def resolved_range(self) -> tuple[datetime, datetime]:
        return (self.date_from or DEFAULT_DATE_FROM, self.date_to or DEFAULT_DATE_TO)


class MutationLine(BaseModel):
    amount: float = 0.0
    amount_excl_vat: float = 0.0
    vat_amount: float = 0.0
    amount_incl_vat: float = 0.0
    tax_code: str = ""
    vat_percentage: float = 0.0
    ledger_code: str = ""
    cost_center_id: int = 0
    invoice_number: str = ""

    @classmethod
    def from_remote(cls, raw: dict[str, Any]) -> "MutationLine":
        return cls(
            amount=_number(raw, "BedragInvoer"),
            amount_excl_vat=_number(raw, "BedragExclBTW"),
            vat_amount=_number(raw, "BedragBTW"),
            amount_incl_vat=_number(raw, "BedragInclBTW"),
            tax_code=_text(raw, "BTWCode"),
            vat_percentage=_number(raw, "BTWPercentage"),
            ledger_code=_text(raw, "TegenrekeningCode"),
            cost_center_id=int(_number(raw, "KostenplaatsID")),
            invoice_number=_text(raw, "Factuurnummer"),
        )


class Mutation(BaseModel):
    """A posted bookkeeping entry (``cMutatieList``)."""

    number: int
    type: str = ""
    booked_at: Optional[datetime] = None
    account: str = ""
    relation_code: str = ""
    invoice_number: str = ""
    voucher: str = ""
    description: str = ""
    payment_term: str = ""
    vat_mode: str = ""
    lines: list[MutationLine] = Field(default_factory=list)

    @classmethod
    def from_remote(cls, raw: dict[str, Any]) -> "Mutation":
        lines = ensure_list(dig(raw, "MutatieRegels", "cMutatieListRegel"))
        return cls(
            number=int(raw.get("MutatieNr") or 0),
            type=_text(raw, "MutatieType"),
            booked_at=_timestamp(raw.get("Datum")),
            account=_text(raw, "Rekening"),
            relation_code=_text(raw, "RelatieCode"),
            invoice_number=_text(raw, "Factuurnummer"),
            voucher=_text(raw, "Boekstuk"),
            description=_text(raw, "Omschrijving"),
            payment_term=_text(raw, "Betalingstermijn"),
            vat_mode=_text(raw, "InExBTW"),
            lines=[MutationLine.from_remote(line) for line in lines],
        )


class HourEntry(BaseModel):
    """Worked hours billed at an hourly rate."""

    hours: float
    price_per_hour: float
    work_date: date

    @field_validator("work_date", mode="before")
    @classmethod
    def drop_time(cls, v: Any) -> Any:
        return v.date() if isinstance(v, datetime) else v


class ProductEntry(BaseModel):
    """Delivered product billed per piece."""

    amount: float
    code: str
    description: str
    sell_price_per_one: float


class WorkOrder(BaseModel):
    """Everything needed to create one invoice."""

    invoice_number: str
    relation_code: str
    description: str
    tax_code: str
    ledger_code: str
    hours: list[HourEntry] = Field(default_factory=list)
    products: list[ProductEntry] = Field(default_factory=list)
    # Fall back to the configured defaults when unset.
    payment_term: Optional[int] = None
    invoice_template: Optional[str] = None

    @field_validator(
        "ledger_code", "invoice_number", "relation_code", "tax_code", mode="before"
    )
    @classmethod
    def coerce_code(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v
