"""Command line entry point for ARES lookups and Excel batch filling."""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from collections.abc import Callable, Mapping, MutableMapping, Sequence
from pathlib import Path
from typing import Any, TypeVar

import yaml
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from . import excel_io
from .config import Settings
from .errors import ApiError, NotFound, RegistryError, TransportUnavailable, ValidationError
from .providers import AresClient
from .utils.logging_setup import setup_logger

_BASE_LOGGER = setup_logger()
logger = _BASE_LOGGER.getChild("cli")

T = TypeVar("T")

EXIT_OK = 0
EXIT_NOT_FOUND = 1
EXIT_USAGE = 2
EXIT_API = 3
EXIT_ROW_ERRORS = 4

DEFAULT_MAPPING: dict[str, str] = {
    "company": "B",
    "dic": "C",
    "street": "D",
    "city": "E",
    "zip": "F",
    "country": "G",
    "legal_form": "H",
    "notes": "I",
}

_RETRY_WAIT = wait_exponential(multiplier=0.5, min=0.5, max=10)


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, TransportUnavailable):
        return True
    return isinstance(exc, ApiError) and (exc.status_code or 0) >= 500


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning("Retrying ARES request (attempt %s) after: %s", retry_state.attempt_number, exc)


def _with_retry(func: Callable[[], T], attempts: int) -> T:
    retrying = Retrying(
        stop=stop_after_attempt(max(attempts, 1)),
        wait=_RETRY_WAIT,
        retry=retry_if_exception(_is_retryable),
        after=_log_retry,
        reraise=True,
    )
    return retrying(func)


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="ARES business registry lookups")
    parser.add_argument(
        "--retries",
        type=int,
        default=3,
        help="Attempts per request for transient failures (default: 3)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ico_parser = subparsers.add_parser("ico", help="Look up a subject by IČO")
    ico_parser.add_argument("ico", help="Identification number (IČO)")

    search_parser = subparsers.add_parser("search", help="Search subjects by name")
    search_parser.add_argument("name", help="Name or part of it (at least 3 characters)")
    search_parser.add_argument("--limit", type=int, default=10, help="Maximum results (default: 10)")

    active_parser = subparsers.add_parser("active", help="Check whether a subject is active")
    active_parser.add_argument("ico", help="Identification number (IČO)")

    clear_parser = subparsers.add_parser("clear-cache", help="Drop cached lookups")
    clear_parser.add_argument("--ico", help="Only drop the entry for this IČO")

    excel_parser = subparsers.add_parser("excel", help="Fill a worksheet from ARES")
    excel_parser.add_argument("--excel", required=True, help="Path to the workbook")
    excel_parser.add_argument("--sheet", default=None, help="Worksheet name (default: active)")
    excel_parser.add_argument("--start", type=int, default=2, help="First row (1-based, default: 2)")
    excel_parser.add_argument("--end", type=int, help="Last row (1-based, inclusive)")
    excel_parser.add_argument("--ico-col", default="A", help="Column holding the IČO (default: A)")
    excel_parser.add_argument(
        "--mapping-yaml",
        help="YAML mapping of record fields to columns",
    )
    excel_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Look up only, do not write the workbook",
    )
    return parser.parse_args(argv)


def _validate_column(column: str | None) -> str | None:
    if column is None:
        return None
    column = column.strip().upper()
    if not column:
        return None
    if not column.isalpha():
        raise ValueError(f"Invalid column: {column}")
    return column


def _load_mapping(path: str | None) -> dict[str, str]:
    mapping: MutableMapping[str, str] = dict(DEFAULT_MAPPING)
    if not path:
        return dict(mapping)

    mapping_path = Path(path)
    if not mapping_path.exists():
        raise FileNotFoundError(f"Mapping file not found: {mapping_path}")

    data = yaml.safe_load(mapping_path.read_text(encoding="utf-8"))
    if data is None:
        return dict(mapping)
    if not isinstance(data, Mapping):
        raise ValueError("Mapping YAML must contain a dictionary")

    for key, value in data.items():
        if value is None:
            mapping.pop(str(key), None)
            continue
        column = _validate_column(str(value))
        if column is None:
            continue
        mapping[str(key)] = column

    return dict(mapping)


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _run_excel(client: AresClient, args: argparse.Namespace) -> int:
    try:
        mapping = _load_mapping(args.mapping_yaml)
        ico_column = _validate_column(args.ico_col)
    except (OSError, ValueError) as exc:
        logger.error("%s", exc)
        return EXIT_USAGE
    if not ico_column:
        logger.error("IČO column must not be empty")
        return EXIT_USAGE
    if args.start < 1 or (args.end is not None and args.end < args.start):
        logger.error("Invalid row range: start=%s end=%s", args.start, args.end)
        return EXIT_USAGE

    processed = hits = not_found = errors = 0
    start_time = time.perf_counter()

    try:
        rows = excel_io.iter_rows(
            excel_path=args.excel,
            sheet=args.sheet,
            start=args.start,
            end=args.end,
            ico_col=ico_column,
        )
    except (OSError, ValueError) as exc:
        logger.error("Cannot read workbook: %s", exc)
        return EXIT_USAGE

    try:
        for row in rows:
            processed += 1
            row_record: dict[str, object]
            try:
                result = _with_retry(lambda: client.find_by_ico(row["ico"]), args.retries)
            except NotFound:
                not_found += 1
                row_record = {"notes": "not found"}
            except RegistryError as exc:
                logger.error("Row %s (%s): %s", row["index"], row["ico"], exc)
                errors += 1
                row_record = {"notes": f"error: {exc}"}
            else:
                hits += 1
                row_record = dict(result.to_dict())
                row_record["notes"] = "active" if result.is_active else f"dissolved {result.dissolved_on}"

            if not args.dry_run:
                excel_io.write_result(
                    excel_path=args.excel,
                    sheet=args.sheet,
                    row_index=row["index"],
                    record=row_record,
                    mapping=mapping,
                )
    finally:
        # rows written before an unexpected failure are kept
        if not args.dry_run:
            excel_io.save(args.excel)

    duration = time.perf_counter() - start_time
    logger.info(
        "Finished: processed=%s hits=%s not_found=%s errors=%s duration=%.2fs",
        processed,
        hits,
        not_found,
        errors,
        duration,
    )
    return EXIT_ROW_ERRORS if errors else EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    setup_logger(logging.DEBUG if args.verbose else logging.INFO)

    try:
        client = AresClient.from_settings(Settings.from_env())
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        return EXIT_USAGE

    try:
        if args.command == "ico":
            result = _with_retry(lambda: client.find_by_ico(args.ico), args.retries)
            _print_json(result.to_dict())
        elif args.command == "search":
            results = _with_retry(
                lambda: client.search_by_name(args.name, args.limit), args.retries
            )
            _print_json([result.to_dict() for result in results])
        elif args.command == "active":
            active = client.is_active(args.ico)
            _print_json(active)
            return EXIT_OK if active else EXIT_NOT_FOUND
        elif args.command == "clear-cache":
            if args.ico:
                client.clear_cache_by_ico(args.ico)
            else:
                client.clear_cache()
        elif args.command == "excel":
            return _run_excel(client, args)
    except ValidationError as exc:
        logger.error("%s", exc)
        return EXIT_USAGE
    except NotFound as exc:
        logger.error("%s", exc)
        return EXIT_NOT_FOUND
    except RegistryError as exc:
        logger.error("%s", exc)
        return EXIT_API
    finally:
        client.close()

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
