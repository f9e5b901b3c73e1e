"""CLI entrypoint for gravatar-fdw."""

from __future__ import annotations

import argparse
import os
from collections.abc import Sequence

from .config import DEFAULT_API_URL, DEFAULT_REQUEST_TIMEOUT, DEFAULT_USER_AGENT, PROFILES_OBJECT
from .connector import GravatarFdw
from .errors import ConfigError, ConnectorError
from .fetchers import RequestsTransport, make_session
from .io_csv import write_rows
from .logging_utils import configure_logging, get_logger
from .models import Cell, ColumnRequest, ColumnType, Qual
from .predicates import EQUALITY_OPERATOR, LOOKUP_FIELD
from .projection import NAMED_FIELDS, WHOLE_DOCUMENT_COLUMN

DEFAULT_COLUMNS = [name for name in NAMED_FIELDS if name != WHOLE_DOCUMENT_COLUMN]


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""
    parser = argparse.ArgumentParser(
        description="Look up public Gravatar profiles by email and export them as rows."
    )
    parser.add_argument(
        "--email",
        action="append",
        required=True,
        help="Email address to look up (repeatable, order is preserved).",
    )
    parser.add_argument(
        "--column",
        action="append",
        help="Column to export (repeatable). Defaults to every known profile field.",
    )
    parser.add_argument("--api-url", default=DEFAULT_API_URL, help="Profiles API base URL.")
    parser.add_argument("--api-key", help="API key (or set GRAVATAR_API_KEY env var).")
    parser.add_argument(
        "--api-key-id",
        help="Secret id resolved from GRAVATAR_FDW_SECRET_<ID> instead of a literal key.",
    )
    parser.add_argument("--output", default="profiles.csv", help="Output CSV path.")
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_REQUEST_TIMEOUT,
        help="Per-request timeout in seconds.",
    )
    parser.add_argument("--no-progress", action="store_true", help="Disable tqdm progress bars.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI input."""
    return build_parser().parse_args(argv)


def namespace_to_options(args: argparse.Namespace) -> dict[str, str]:
    """Convert CLI args to server options understood by GravatarFdw.init."""
    options = {"api_url": args.api_url}
    api_key = args.api_key or os.getenv("GRAVATAR_API_KEY")
    if api_key:
        options["api_key"] = api_key
    elif args.api_key_id:
        options["api_key_id"] = args.api_key_id
    return options


def requested_columns(names: Sequence[str] | None) -> list[ColumnRequest]:
    """Map column names to requests; unknown names are read as strings."""
    return [
        ColumnRequest(name=name, type=NAMED_FIELDS.get(name, ColumnType.STRING))
        for name in (names or DEFAULT_COLUMNS)
    ]


def run_lookup(
    connector: GravatarFdw,
    *,
    options: dict[str, str],
    emails: Sequence[str],
    columns: Sequence[ColumnRequest],
) -> list[list[Cell | None]]:
    """Drive one full scan cycle and collect every row."""
    connector.init(options)
    quals = [Qual(field=LOOKUP_FIELD, operator=EQUALITY_OPERATOR, value=email) for email in emails]
    connector.begin_scan({"table": PROFILES_OBJECT}, quals)
    rows: list[list[Cell | None]] = []
    try:
        while True:
            row = connector.iterate(columns)
            if row is None:
                break
            rows.append(row)
    finally:
        connector.end_scan()
    return rows


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entrypoint."""
    args = parse_args(argv)
    configure_logging(args.verbose)
    logger = get_logger()

    transport = RequestsTransport(
        session=make_session(DEFAULT_USER_AGENT),
        timeout=args.timeout,
        logger=get_logger("transport"),
    )
    connector = GravatarFdw(transport=transport, logger=logger, show_progress=not args.no_progress)
    columns = requested_columns(args.column)
    try:
        rows = run_lookup(
            connector,
            options=namespace_to_options(args),
            emails=args.email,
            columns=columns,
        )
    except ConfigError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2
    except ConnectorError as exc:
        logger.error("Scan failed: %s", exc)
        return 1
    finally:
        transport.close()

    write_rows(args.output, [column.name for column in columns], rows)
    logger.info("Wrote %d profiles to %s", len(rows), args.output)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
