# ==============================================================================
# feecom/models.py
# ------------------------------------------------------------------------------
# Defines the database schema using SQLAlchemy ORM models.
# ==============================================================================

import json
import uuid
from datetime import datetime, timezone

from sqlalchemy import event

from feecom import db
from feecom.calculator.engine import format_breakdown
from feecom.calculator.errors import ImmutableRecordError


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _new_public_id():
    return uuid.uuid4().hex


class CalculationRecord(db.Model):
    """
    One successful fee-commission calculation. Records are append-only:
    created once per processed file and never modified afterwards.
    """
    __tablename__ = 'calculation_record'
    id = db.Column(db.Integer, primary_key=True)
    public_id = db.Column(db.String(32), unique=True, nullable=False, index=True, default=_new_public_id)
    biller_name = db.Column(db.String(256), index=True, nullable=False)
    # The unique constraint is what makes the duplicate check safe under concurrent uploads.
    file_name = db.Column(db.String(255), nullable=False)
    scheme_type = db.Column(db.String(32), nullable=False)
    layout_version = db.Column(db.String(32), nullable=False)
    submitted_by = db.Column(db.String(128), nullable=False)
    created_at = db.Column(db.DateTime, index=True, nullable=False, default=_utcnow)

    # Audit trail and result, stored as JSON strings
    raw_fields_json = db.Column(db.Text, nullable=False)
    breakdown_json = db.Column(db.Text, nullable=False)

    __table_args__ = (db.UniqueConstraint('file_name', name='_calculation_file_name_uc'),)

    def __repr__(self):
        return f'<CalculationRecord {self.public_id}: {self.file_name}>'

    @property
    def raw_fields(self):
        return json.loads(self.raw_fields_json)

    @property
    def breakdown(self):
        return json.loads(self.breakdown_json)

    def to_summary(self):
        """Lightweight representation used by history listings."""
        return {
            'id': self.public_id,
            'biller_name': self.biller_name,
            'file_name': self.file_name,
            'scheme_type': self.scheme_type,
            'submitted_by': self.submitted_by,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def to_dict(self):
        """
        Full representation. A freshly computed record and one loaded from
        history serialise identically.
        """
        data = self.to_summary()
        data['layout_version'] = self.layout_version
        data['raw_fields'] = self.raw_fields
        data['breakdown'] = format_breakdown(self.breakdown)
        return data


@event.listens_for(CalculationRecord, 'before_update')
def _reject_updates(mapper, connection, target):
    raise ImmutableRecordError(f"Calculation {target.public_id} is immutable and cannot be changed.")
