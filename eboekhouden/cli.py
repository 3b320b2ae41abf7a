"""Command line access to the configured accounting provider."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime
from typing import Optional, Sequence

from eboekhouden.accounting_provider import get_provider
from eboekhouden.errors import AccountingError
from eboekhouden.logging_config import configure_logging
from eboekhouden.models import Ledger, Mutation, MutationFilter, Relation

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eboekhouden", description="Read data from e-Boekhouden."
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("relations", help="list relations")
    sub.add_parser("ledgers", help="list ledger accounts")
    mutations = sub.add_parser("mutations", help="list mutations")
    mutations.add_argument("--number", type=int, default=0, help="mutation number")
    mutations.add_argument("--from", dest="date_from", type=datetime.fromisoformat)
    mutations.add_argument("--to", dest="date_to", type=datetime.fromisoformat)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.INFO)

    provider = get_provider()
    try:
        if args.command == "relations":
            records = [Relation.from_remote(r) for r in provider.list_relations()]
        elif args.command == "ledgers":
            records = [Ledger.from_remote(r) for r in provider.list_ledgers()]
        else:
            mutation_filter = MutationFilter(
                mutation_number=args.number,
                date_from=args.date_from,
                date_to=args.date_to,
            )
            records = [
                Mutation.from_remote(r) for r in provider.list_mutations(mutation_filter)
            ]
    except AccountingError as exc:
        logger.error("%s failed: %s", args.command, exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(
        json.dumps(
            [r.model_dump(mode="json") for r in records], ensure_ascii=False, indent=2
        )
    )
    return 0
