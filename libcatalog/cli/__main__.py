from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path

import pandas as pd
from dotenv import load_dotenv

from libcatalog.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config, validate_startup
from libcatalog.db.store import InMemoryBookStore, NotFoundError, RecordStore, StoreError
from libcatalog.logging.init import get_logger, log_summary, setup_logging
from libcatalog.models.book import BookRecord
from libcatalog.models.config_models import AppConfig, DatabaseConfig
from libcatalog.models.field_schema import BOOK_FIELDS, ValueKind, field_by_name
from libcatalog.services.access import AccessDeniedError, policy_from_config, require_authorized
from libcatalog.services.cards import CardType, format_card, render_card
from libcatalog.services.dashboard import build_dashboard
from libcatalog.services.orchestrator import ImportAbortedError, import_spreadsheet
from libcatalog.services.query import parse_filter, parse_sort
from libcatalog.services.summary import render_summary_line, render_summary_message
from libcatalog.services.validation import RecordSchemaError

"""CLI entrypoint.

Flow: load .env -> load + validate config -> startup checks -> access gate
-> open record store -> run subcommand.

Exit codes: 0 success, 2 import finished with row failures, 1 fatal.
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2

IDENTITY_ENV = "LIBCAT_USER"

# inventory grid default columns
GRID_COLUMNS = (
    "id",
    "accession_number",
    "title",
    "author",
    "ddc",
    "class_number",
    "author_notation",
    "copyright_year",
    "copy",
    "ris_number",
    "date_added",
)
# 1 文字あたりのピクセル幅 (グリッド幅 -> 文字数)
PIXELS_PER_CHAR = 10
SNAPSHOT_PAGE_SIZE = 100_000


@contextmanager
def _open_store(db: DatabaseConfig, dry_run: bool = False) -> Iterator[RecordStore]:
    """Yield the configured record store; dry runs get an empty in-memory store."""
    if dry_run or db.backend == "memory":
        yield InMemoryBookStore()
        return

    from libcatalog.db.postgres_store import PostgresBookStore, connect

    conn = connect(db.to_dsn())
    try:
        store = PostgresBookStore(conn, table=db.table)
        store.ensure_schema()
        yield store
    finally:
        conn.close()


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env so its connection settings take precedence over the shell's."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _non_negative_int(text: str) -> int:
    value = int(text)
    if value < 0:
        raise argparse.ArgumentTypeError(f"must be 0 or greater, got {value}")
    return value


def _positive_int(text: str) -> int:
    value = int(text)
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be 1 or greater, got {value}")
    return value


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="libcatalog", description="Library catalog management")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="YAML config file")
    p.add_argument("--user", default=None, help=f"operator identity (default: ${IDENTITY_ENV})")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    imp = sub.add_parser("import", help="Bulk import books from a spreadsheet")
    imp.add_argument("file", type=Path)
    imp.add_argument("--dry-run", action="store_true", help="Validate only; nothing is written")

    ls = sub.add_parser("list", help="Inventory listing")
    ls.add_argument("--page", type=_non_negative_int, default=0, help="0-based page number")
    ls.add_argument("--page-size", type=_positive_int, default=10)
    ls.add_argument("--filter", action="append", default=[], metavar="FIELD:OP:VALUE")
    ls.add_argument("--sort", action="append", default=[], metavar="FIELD[:asc|desc]")
    ls.add_argument("--columns", default=",".join(GRID_COLUMNS), help="comma-separated field names")

    show = sub.add_parser("show", help="Show one book")
    show.add_argument("id")

    delete = sub.add_parser("delete", help="Delete one book")
    delete.add_argument("id")

    card = sub.add_parser("card", help="Render a printable catalog card")
    card.add_argument("id")
    card.add_argument("--type", choices=[t.value for t in CardType], default=None)

    sub.add_parser("stats", help="Dashboard aggregates")
    return p.parse_args(argv)


def _cmd_import(args: argparse.Namespace, cfg: AppConfig, store: RecordStore) -> int:
    logger = get_logger()
    if args.dry_run:
        logger.info("dry run: records are validated but not written")
    try:
        result = import_spreadsheet(args.file, store, cfg.import_settings)
    except ImportAbortedError as e:
        logger.error(str(e))
        return EXIT_FATAL
    except RecordSchemaError as e:
        logger.error(f"validation rules: {e}")
        return EXIT_FATAL

    summary_line = render_summary_line(result)
    log_summary(summary_line[len("SUMMARY "):])
    message = render_summary_message(result, max_failures=cfg.import_settings.max_reported_failures)
    log = logger.error if message.severity == "error" else logger.info
    for line in message.text.splitlines():
        log(line)
    return EXIT_PARTIAL_FAILURE if result.has_failures else EXIT_SUCCESS


def _cell(value: object, kind: ValueKind, width: int) -> str:
    if value is None:
        return ""
    text = str(value)
    if kind is ValueKind.DATE:
        text = text[:10]
    limit = max(width // PIXELS_PER_CHAR, 4)
    return text if len(text) <= limit else text[: limit - 1] + "~"


def render_grid(records: list[BookRecord], columns: list[str]) -> str:
    """Inventory grid as a fixed-width text table."""
    specs = [field_by_name(c) for c in columns]
    rows = [[_cell(r.get(s.name), s.value_kind, s.width) for s in specs] for r in records]
    df = pd.DataFrame(rows, columns=[s.display_label for s in specs])
    return df.to_string(index=False)


def _cmd_list(args: argparse.Namespace, cfg: AppConfig, store: RecordStore) -> int:
    logger = get_logger()
    try:
        filters = [parse_filter(f) for f in args.filter]
        sort = [parse_sort(s) for s in args.sort]
        columns = [c.strip() for c in args.columns.split(",") if c.strip()]
        for c in columns:
            field_by_name(c)
    except (ValueError, KeyError) as e:
        logger.error(f"list: {e}")
        return EXIT_FATAL
    result = store.get_many(page=args.page, page_size=args.page_size, filters=filters, sort=sort)
    if not result.items:
        print("no books found")
    else:
        print(render_grid(result.items, columns))
    pages = max((result.total_count + args.page_size - 1) // args.page_size, 1)
    print(f"page {args.page + 1}/{pages} total={result.total_count}")
    return EXIT_SUCCESS


def _cmd_show(args: argparse.Namespace, cfg: AppConfig, store: RecordStore) -> int:
    record = store.get_one(args.id)
    print(f"{'ID':<24} {record.id}")
    for spec in BOOK_FIELDS:
        value = record.get(spec.name)
        if spec.name == "id" or value is None:
            continue
        print(f"{spec.display_label:<24} {value}")
    return EXIT_SUCCESS


def _cmd_delete(args: argparse.Namespace, cfg: AppConfig, store: RecordStore) -> int:
    store.delete_one(args.id)
    get_logger().info(f"deleted book id={args.id}")
    return EXIT_SUCCESS


def _cmd_card(args: argparse.Namespace, cfg: AppConfig, store: RecordStore) -> int:
    record = store.get_one(args.id)
    card = format_card(
        record,
        args.type or cfg.cards.default_type,
        default_location=cfg.cards.default_location,
    )
    print(f"{card.card_type.label} ({card.width_cm} x {card.height_cm} cm)")
    print(render_card(card))
    return EXIT_SUCCESS


def _cmd_stats(args: argparse.Namespace, cfg: AppConfig, store: RecordStore) -> int:
    snapshot = store.get_many(page=0, page_size=SNAPSHOT_PAGE_SIZE).items
    stats = build_dashboard(snapshot)
    print(f"Total books: {stats.total_books}")
    print("Books by copyright year:")
    for year, count in stats.by_year:
        print(f"  {year}: {count}")
    print("Books by DDC:")
    for ddc, count in stats.by_ddc:
        print(f"  {ddc}: {count}")
    return EXIT_SUCCESS


COMMANDS: dict[str, Callable[[argparse.Namespace, AppConfig, RecordStore], int]] = {
    "import": _cmd_import,
    "list": _cmd_list,
    "show": _cmd_show,
    "delete": _cmd_delete,
    "card": _cmd_card,
    "stats": _cmd_stats,
}


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときのみシステム引数を読む ([] はテストからの明示的な空引数)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)
    if args.debug:
        setup_logging(debug=True)

    try:
        cfg = load_config(args.config, env=os.environ)
    except ConfigError as e:
        for problem in e.problems:
            logger.error(f"config: {problem}")
        return EXIT_FATAL

    problems = validate_startup(cfg)
    if problems:
        for problem in problems:
            logger.error(f"startup: {problem}")
        return EXIT_FATAL

    identity = args.user or os.getenv(IDENTITY_ENV)
    try:
        require_authorized(policy_from_config(cfg.access), identity)
    except AccessDeniedError as e:
        logger.error(str(e))
        return EXIT_FATAL

    handler = COMMANDS[args.command]
    try:
        with _open_store(cfg.database, dry_run=getattr(args, "dry_run", False)) as store:
            return handler(args, cfg, store)
    except NotFoundError as e:
        logger.error(str(e))
        return EXIT_FATAL
    except StoreError as e:
        logger.error(f"store: {e}")
        return EXIT_FATAL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
