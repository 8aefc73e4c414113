# ==============================================================================
# feecom/history.py
# ------------------------------------------------------------------------------
# Duplicate guard and append-only history of calculation records.
# ==============================================================================

import json
import logging

from flask import current_app
from sqlalchemy.exc import IntegrityError

from feecom import db
from feecom.calculator.errors import DuplicateFileError, RecordNotFoundError
from feecom.models import CalculationRecord


def find_by_file_name(file_name):
    return CalculationRecord.query.filter_by(file_name=file_name).first()


def ensure_not_duplicate(file_name):
    """Raises DuplicateFileError if a record already exists for this exact file name."""
    existing = find_by_file_name(file_name)
    if existing is not None:
        logging.info(f"Rejecting '{file_name}': already processed as {existing.public_id}.")
        raise DuplicateFileError(file_name, existing.public_id, existing.created_at)


def persist_record(*, file_name, biller_name, scheme_type, layout_version,
                   raw_fields, breakdown, submitted_by):
    """
    Stores a new calculation record and commits it.

    The unique constraint on file_name decides concurrent submissions of the
    same file: the loser's commit fails, is rolled back, and is reported as a
    duplicate of the record that won.
    """
    record = CalculationRecord(
        file_name=file_name,
        biller_name=biller_name,
        scheme_type=getattr(scheme_type, 'value', scheme_type),
        layout_version=layout_version,
        raw_fields_json=json.dumps(raw_fields),
        breakdown_json=json.dumps(breakdown),
        submitted_by=submitted_by,
    )
    db.session.add(record)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        existing = find_by_file_name(file_name)
        if existing is None:
            raise
        logging.warning(f"Concurrent submission of '{file_name}' lost to {existing.public_id}.")
        raise DuplicateFileError(file_name, existing.public_id, existing.created_at)

    logging.info(f"Stored calculation {record.public_id} for biller '{biller_name}'.")
    return record


def get_record(public_id):
    record = CalculationRecord.query.filter_by(public_id=public_id).first()
    if record is None:
        raise RecordNotFoundError(public_id)
    return record


def search_records(query=None, limit=None):
    """
    Returns records whose biller name contains `query` (case-insensitive),
    newest first. An empty query returns the most recent records.
    """
    if limit is None:
        limit = current_app.config.get('HISTORY_DEFAULT_LIMIT', 20)
    if limit < 1:
        raise ValueError('limit must be a positive integer')
    limit = min(limit, current_app.config.get('HISTORY_MAX_LIMIT', 100))

    records = CalculationRecord.query
    query = (query or '').strip()
    if query:
        records = records.filter(CalculationRecord.biller_name.icontains(query, autoescape=True))
    return (records
            .order_by(CalculationRecord.created_at.desc(), CalculationRecord.id.desc())
            .limit(limit)
            .all())
