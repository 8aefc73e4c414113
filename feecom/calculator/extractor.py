# ==============================================================================
# feecom/calculator/extractor.py
# ------------------------------------------------------------------------------
# Reads the fixed cell coordinates of an uploaded scheme workbook into a flat
# raw-value record. Pure positional I/O: no business logic lives here.
# ==============================================================================

import logging
import math
import zipfile
from io import BytesIO

import openpyxl
from openpyxl.utils.cell import column_index_from_string, coordinate_from_string
from openpyxl.utils.exceptions import InvalidFileException

from .errors import MalformedWorkbookError, NonNumericCellError
from .schema import REGULAR_LAYOUT


def _layout_extent(layout):
    """Returns the (max_row, max_column) a worksheet must reach to hold every cell."""
    max_row, max_col = 0, 0
    for _, spec in layout:
        column, row = coordinate_from_string(spec.cell)
        max_row = max(max_row, row)
        max_col = max(max_col, column_index_from_string(column))
    return max_row, max_col


def _parse_numeric(field, cell, value):
    """Converts a raw cell value to float, or raises NonNumericCellError."""
    if isinstance(value, bool):
        raise NonNumericCellError(field, cell, value)
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip().replace(',', '')
        if not text:
            raise NonNumericCellError(field, cell, value)
        try:
            number = float(text)
        except ValueError:
            raise NonNumericCellError(field, cell, value) from None
    else:
        # None (empty or uncalculated formula), dates, errors, etc.
        raise NonNumericCellError(field, cell, value)

    if not math.isfinite(number):
        raise NonNumericCellError(field, cell, value)
    return number


def load_first_worksheet(content):
    """
    Opens workbook bytes and returns (workbook, first worksheet).

    Formula cells are read through their cached results (data_only=True), the
    same value a user sees when opening the file in Excel.
    """
    try:
        workbook = openpyxl.load_workbook(BytesIO(content), data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, ValueError, OSError, TypeError) as e:
        raise MalformedWorkbookError(f"The uploaded file is not a readable .xlsx workbook: {e}") from e

    if not workbook.worksheets:
        workbook.close()
        raise MalformedWorkbookError("The workbook does not contain any worksheet.")
    return workbook, workbook.worksheets[0]


def extract_raw_fields(content, layout=REGULAR_LAYOUT):
    """
    Extracts every field of the cell layout from the first worksheet.

    Args:
        content (bytes): The raw .xlsx file content.
        layout (CellLayout): The versioned coordinate table to read.

    Returns:
        dict: field name -> float, one entry per field of the layout.

    Raises:
        MalformedWorkbookError: the bytes are not a workbook or the sheet is
            too small for the layout.
        NonNumericCellError: a required cell is empty, or any cell holds
            something that is not a number. Blank optional cells read as 0.0.
    """
    workbook, worksheet = load_first_worksheet(content)
    try:
        logging.debug(f"Reading sheet '{worksheet.title}' with layout {layout.version} "
                      f"(rows={worksheet.max_row}, columns={worksheet.max_column})")

        expected_rows, expected_cols = _layout_extent(layout)
        if worksheet.max_row < expected_rows or worksheet.max_column < expected_cols:
            raise MalformedWorkbookError(
                f"Sheet '{worksheet.title}' does not match the {layout.version} layout: "
                f"expected data up to row {expected_rows}, column {expected_cols}, "
                f"found row {worksheet.max_row}, column {worksheet.max_column}."
            )

        raw_fields = {}
        for field, spec in layout:
            value = worksheet[spec.cell].value
            if not spec.required and (value is None or (isinstance(value, str) and not value.strip())):
                raw_fields[field] = 0.0
                continue
            raw_fields[field] = _parse_numeric(field, spec.cell, value)
    finally:
        workbook.close()

    logging.debug(f"Extracted {len(raw_fields)} raw fields: {raw_fields}")
    return raw_fields
