from datetime import date, datetime

import pytest

from eboekhouden.models import (
    HourEntry,
    MutationFilter,
    ProductEntry,
    Relation,
    WorkOrder,
)
from eboekhouden.payloads import (
    build_invoice_payload,
    build_mutation_filter,
    build_relation_payload,
    round_price,
)


def _work(**overrides):
    data = dict(
        invoice_number="F2024-001",
        relation_code="KLANT01",
        description="Onderhoud maart",
        tax_code="HOOG_VERK_21",
        ledger_code=8000,
        hours=[
            HourEntry(hours=2.5, price_per_hour=65.0, work_date=date(2024, 3, 4)),
            HourEntry(hours=1, price_per_hour=65.0, work_date=date(2024, 3, 11)),
        ],
        products=[
            ProductEntry(
                amount=3, code="P-100", description="Filter", sell_price_per_one=12.345
            )
        ],
    )
    data.update(overrides)
    return WorkOrder(**data)


def test_invoice_lines_order_and_shape(config):
    """Two hour entries and one product entry give three ordered lines."""
    payload = build_invoice_payload(_work(), config, issued_at=datetime(2024, 3, 31, 12))
    lines = payload["Regels"]["cFactuurRegel"]

    assert len(lines) == 3
    assert [line["Eenheid"] for line in lines] == ["Uur", "Uur", "Stuk"]
    assert lines[0]["Omschrijving"] == "Gewerkte uren, 04-03-2024"
    assert "11-03-2024" in lines[1]["Omschrijving"]
    assert lines[0]["Aantal"] == 2.5
    assert lines[0]["Code"] == "1"
    assert lines[2]["Code"] == "P-100"
    assert lines[2]["Omschrijving"] == "Filter"
    assert lines[2]["PrijsPerEenheid"] == 12.35
    for line in lines:
        assert line["BTWCode"] == "HOOG_VERK_21"
        assert line["TegenrekeningCode"] == "8000"
        assert line["KostenplaatsID"] == 0


def test_invoice_header_uses_config_defaults(config):
    issued = datetime(2024, 3, 31, 12)
    payload = build_invoice_payload(_work(), config, issued_at=issued)

    assert payload["Factuurnummer"] == "F2024-001"
    assert payload["Relatiecode"] == "KLANT01"
    assert payload["Datum"] == issued
    assert payload["Betalingstermijn"] == 30
    assert payload["Factuursjabloon"] == "Standaard"
    assert payload["EmailVanAdres"] == "facturen@example.test"
    assert payload["EmailVanNaam"] == "Example BV"
    assert payload["BoekhoudmutatieOmschrijving"] == "Onderhoud maart"
    assert payload["InBoekhoudingPlaatsen"] == 1


def test_invoice_direct_debit_disabled(config):
    payload = build_invoice_payload(_work(), config)
    assert payload["AutomatischeIncasso"] == 0
    assert payload["IncassoIBAN"] == ""
    assert payload["IncassoMachtigingFirst"] == 0
    assert payload["IncassoMachtigingDatumOndertekening"] == datetime(1970, 1, 1)
    assert payload["PerEmailVerzenden"] == 0


def test_invoice_overrides_payment_term_and_template(config):
    payload = build_invoice_payload(
        _work(payment_term=7, invoice_template="Kort"), config
    )
    assert payload["Betalingstermijn"] == 7
    assert payload["Factuursjabloon"] == "Kort"


def test_invoice_without_lines(config):
    payload = build_invoice_payload(_work(hours=[], products=[]), config)
    assert payload["Regels"]["cFactuurRegel"] == []


@pytest.mark.parametrize(
    "value, expected",
    [(12.345, 12.35), (0.125, 0.13), (10, 10.0), (19.994, 19.99), (2.675, 2.68)],
)
def test_round_price_half_up(value, expected):
    assert round_price(value) == expected


@pytest.mark.parametrize("local_id", [None, 0, 1])
def test_relation_payload_new_relation_gets_zero_id(local_id):
    relation = Relation(id=local_id, code="KLANT01", company="Bakkerij Jansen")
    assert build_relation_payload(relation)["ID"] == 0


def test_relation_payload_keeps_existing_id():
    relation = Relation(id=5, code="KLANT01", company="Bakkerij Jansen")
    assert build_relation_payload(relation)["ID"] == 5


def test_relation_payload_blanks_and_inert_fields():
    relation = Relation(
        code="KLANT01",
        company="Bakkerij Jansen",
        added_on=date(2024, 1, 15),
        city="Utrecht",
        iban="NL91ABNA0417164300",
        extra_fields=["A", "B"],
    )
    payload = build_relation_payload(relation)

    assert payload["AddDatum"] == datetime(2024, 1, 15)
    assert payload["Plaats"] == "Utrecht"
    assert payload["Contactpersoon"] == ""
    assert payload["Email"] == ""
    assert payload["BTWNummer"] == ""
    # Banking data is never sent
    assert payload["IBAN"] == ""
    assert payload["BIC"] == ""
    assert payload["Adres2"] == ""
    assert payload["NieuwsbriefgroepenCount"] == 0
    assert payload["Gb_ID"] == 0
    assert payload["Def1"] == "A"
    assert payload["Def2"] == "B"
    assert payload["Def10"] == ""
    assert not any(value is None for value in payload.values())


def test_mutation_filter_defaults_span_all_time():
    cfilter = build_mutation_filter(MutationFilter())
    assert cfilter["DatumVan"] == datetime(1970, 1, 1, 0, 0, 0)
    assert cfilter["DatumTm"] == datetime(2050, 12, 31, 23, 59, 59)
    assert cfilter["MutatieNr"] == 0
    assert cfilter["MutatieNrVan"] == 0
    assert cfilter["MutatieNrTm"] == 0
    assert cfilter["Factuurnummer"] == ""


def test_mutation_filter_uses_given_range():
    cfilter = build_mutation_filter(
        MutationFilter(
            mutation_number=42,
            date_from=datetime(2024, 1, 1),
            date_to=datetime(2024, 1, 31, 23, 59, 59),
        )
    )
    assert cfilter["MutatieNr"] == 42
    assert cfilter["DatumVan"] == datetime(2024, 1, 1)
    assert cfilter["DatumTm"] == datetime(2024, 1, 31, 23, 59, 59)
