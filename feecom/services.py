# ==============================================================================
# feecom/services.py
# ------------------------------------------------------------------------------
# Entry points of the fee-commission engine: submit a new calculation, load a
# past one, browse the history. Routes and CLI commands call only these.
# ==============================================================================

import logging

from flask import current_app

from feecom import history
from feecom.calculator.engine import DEFAULT_TOLERANCE, calculate_breakdown
from feecom.calculator.errors import UnsupportedSchemeTypeError
from feecom.calculator.extractor import extract_raw_fields
from feecom.calculator.schema import LAYOUTS, SchemeType

SCHEME_FOR_PREFIX = 'Fee-Commission Scheme for '
SCHEME_DASH_PREFIX = 'Fee-Commission Scheme - '
WORKBOOK_EXTENSION = '.xlsx'


def _strip_extension(name):
    if name.lower().endswith(WORKBOOK_EXTENSION):
        return name[:-len(WORKBOOK_EXTENSION)]
    return name


def derive_biller_name(file_name):
    """
    Derives the biller name from an uploaded scheme file name.

    'Fee-Commission Scheme for Acme Corp_v2.xlsx'      -> 'Acme Corp'
    'Fee-Commission Scheme - Acme Corp - final.xlsx'   -> 'Acme Corp'
    'random_file.xlsx'                                 -> 'random_file'
    """
    if SCHEME_FOR_PREFIX in file_name:
        candidate = file_name.split(SCHEME_FOR_PREFIX, 1)[1].split('_', 1)[0]
    elif SCHEME_DASH_PREFIX in file_name:
        candidate = file_name.split(SCHEME_DASH_PREFIX, 1)[1].split(' - ', 1)[0]
    else:
        candidate = file_name

    biller_name = _strip_extension(candidate).strip()
    return biller_name or _strip_extension(file_name).strip()


def submit_calculation(content, file_name, scheme_type, submitted_by):
    """
    Runs a new calculation end to end and returns the stored CalculationRecord.

    Order matters: the scheme type is gated before anything else, and the
    duplicate check runs before the workbook is opened. Nothing is written
    unless extraction and calculation both succeed.

    Raises:
        ValueError: unknown scheme type label or missing submitter.
        UnsupportedSchemeTypeError: a declared but not yet calculable scheme type.
        DuplicateFileError: the file name was processed before.
        MalformedWorkbookError, NonNumericCellError: the workbook is unusable.
        InconsistentTotalsError: the shares do not reconcile to the fee rate.
    """
    scheme = SchemeType.parse(scheme_type)
    layout = LAYOUTS.get(scheme)
    if layout is None:
        logging.info(f"Rejected '{file_name}': {scheme.value} calculations are not available yet.")
        raise UnsupportedSchemeTypeError(scheme)

    if not submitted_by or not str(submitted_by).strip():
        raise ValueError('submitted_by is required')

    history.ensure_not_duplicate(file_name)

    biller_name = derive_biller_name(file_name)
    logging.info(f"Processing '{file_name}' for biller '{biller_name}' ({scheme.value}), "
                 f"submitted by {submitted_by}.")

    raw_fields = extract_raw_fields(content, layout)
    tolerance = current_app.config.get('FEECOM_TOLERANCE', DEFAULT_TOLERANCE)
    breakdown = calculate_breakdown(raw_fields, tolerance=tolerance, layout=layout)

    return history.persist_record(
        file_name=file_name,
        biller_name=biller_name,
        scheme_type=scheme,
        layout_version=layout.version,
        raw_fields=raw_fields,
        breakdown=breakdown,
        submitted_by=str(submitted_by).strip(),
    )


def load_calculation(public_id):
    """Returns the stored CalculationRecord, or raises RecordNotFoundError."""
    return history.get_record(public_id)


def list_calculations(query=None, limit=None):
    """Returns history summaries matching the biller-name substring, newest first."""
    return [record.to_summary() for record in history.search_records(query, limit)]
