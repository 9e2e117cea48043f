"""Reading IČO columns from and writing ARES results to Excel workbooks."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import TypedDict

from openpyxl import load_workbook
from openpyxl.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from .result import CompanyRecord
from .utils.logging_setup import setup_logger

_BASE_LOGGER = setup_logger()
LOGGER = _BASE_LOGGER.getChild("excel_io")


class RowData(TypedDict):
    """A worksheet row holding an IČO to look up."""

    index: int
    ico: str


_WORKBOOK_CACHE: dict[str, Workbook] = {}


def _get_or_load_workbook(excel_path: str) -> Workbook:
    """Return the workbook for *excel_path*, loading it on first use."""

    workbook = _WORKBOOK_CACHE.get(excel_path)
    if workbook is None:
        LOGGER.debug("Loading workbook: %s", excel_path)
        workbook = load_workbook(excel_path)
        _WORKBOOK_CACHE[excel_path] = workbook
    return workbook


def _normalise_column(column: str | None) -> str | None:
    if column is None:
        return None
    column = column.strip().upper()
    return column or None


def _cell_to_string(value: object) -> str | None:
    if value is None:
        return None
    # Numeric IČO cells come back as int or float from openpyxl.
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    value_str = str(value).strip()
    return value_str or None


def _read_cell(worksheet: Worksheet, column: str, row_index: int) -> str | None:
    return _cell_to_string(worksheet[f"{column}{row_index}"].value)


def _find_last_row_with_value(worksheet: Worksheet, column: str, start_row: int) -> int:
    for row_idx in range(worksheet.max_row, start_row - 1, -1):
        if _read_cell(worksheet, column, row_idx) is not None:
            return row_idx
    return start_row - 1


def _get_worksheet(workbook: Workbook, sheet: str | None) -> Worksheet:
    if sheet:
        try:
            return workbook[sheet]
        except KeyError as exc:
            raise ValueError(f"Worksheet '{sheet}' not found") from exc
    return workbook.active


def iter_rows(
    excel_path: str,
    sheet: str | None,
    start: int,
    end: int | None,
    ico_col: str,
) -> Iterator[RowData]:
    """Yield the rows between *start* and *end* whose IČO cell is not blank."""

    workbook = _get_or_load_workbook(excel_path)
    worksheet = _get_worksheet(workbook, sheet)
    column = _normalise_column(ico_col)
    if not column:
        raise ValueError("IČO column must be provided")

    stop = end if end is not None else _find_last_row_with_value(worksheet, column, start)
    LOGGER.info("Reading rows %s-%s from sheet '%s' (%s)", start, stop, worksheet.title, excel_path)

    def _generator() -> Iterator[RowData]:
        yielded = 0
        for row_idx in range(start, stop + 1):
            ico = _read_cell(worksheet, column, row_idx)
            if ico is None:
                continue
            yielded += 1
            yield RowData(index=row_idx, ico=ico)

        LOGGER.info("Rows with an IČO in sheet '%s': %s", worksheet.title, yielded)

    return _generator()


def write_result(
    excel_path: str,
    sheet: str | None,
    row_index: int,
    record: CompanyRecord | Mapping[str, object],
    mapping: Mapping[str, str],
) -> None:
    """Write the fields of *record* into the columns given by *mapping*."""

    workbook = _get_or_load_workbook(excel_path)
    worksheet = _get_worksheet(workbook, sheet)

    LOGGER.debug("Writing result for row %s to sheet '%s'", row_index, worksheet.title)

    for key, column in mapping.items():
        column_letter = _normalise_column(column)
        if not column_letter or key not in record:
            continue
        value = record[key]  # type: ignore[literal-required]
        if value is None:
            cell_value: object = ""
        elif isinstance(value, (str, bool)):
            cell_value = value
        else:
            cell_value = str(value)
        worksheet[f"{column_letter}{row_index}"] = cell_value


def save(excel_path: str) -> None:
    """Persist pending changes of *excel_path* to disk."""

    workbook = _WORKBOOK_CACHE.get(excel_path)
    if workbook is None:
        LOGGER.debug("No cached workbook for path: %s", excel_path)
        return
    LOGGER.info("Saving workbook: %s", excel_path)
    workbook.save(excel_path)


def reset() -> None:
    """Forget all loaded workbooks (mainly for tests)."""

    LOGGER.debug("Clearing workbook cache")
    _WORKBOOK_CACHE.clear()


__all__ = ["RowData", "iter_rows", "write_result", "save", "reset"]
