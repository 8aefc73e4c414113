# ==============================================================================
# feecom/calculator/errors.py
# ------------------------------------------------------------------------------
# Error taxonomy for the fee-commission engine. Every error is an expected,
# caller-recoverable condition and knows how to describe itself to a client.
# ==============================================================================


class FeeCommissionError(Exception):
    """Base class for every failure the engine reports to its callers."""
    status_code = 400
    category = 'error'
    code = 'fee_commission_error'

    def __init__(self, message):
        super().__init__(message)
        self.message = message

    def context(self):
        return {}

    def to_dict(self):
        payload = {
            'success': False,
            'error': self.code,
            'category': self.category,
            'message': self.message,
        }
        payload.update(self.context())
        return payload


# --- Input-format errors ---

class WorkbookFormatError(FeeCommissionError):
    category = 'input_format'
    code = 'workbook_format_error'


class MalformedWorkbookError(WorkbookFormatError):
    code = 'malformed_workbook'


class NonNumericCellError(WorkbookFormatError):
    code = 'non_numeric_cell'

    def __init__(self, field, cell, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            message = f"Required cell {cell} ({field}) is empty."
        else:
            message = f"Required cell {cell} ({field}) is not a number: {value!r}."
        super().__init__(message)
        self.field = field
        self.cell = cell
        self.value = value

    def context(self):
        return {'field': self.field, 'cell': self.cell, 'value': None if self.value is None else str(self.value)}


# --- Computation-consistency errors ---

class InconsistentTotalsError(FeeCommissionError):
    status_code = 422
    category = 'consistency'
    code = 'inconsistent_totals'

    def __init__(self, persona, channel, expected, actual, message=None):
        message = message or (
            f"Commission shares for {persona}/{channel} sum to {actual!r} "
            f"but the fee rate is {expected!r}."
        )
        super().__init__(message)
        self.persona = persona
        self.channel = channel
        self.expected = expected
        self.actual = actual

    def context(self):
        return {'persona': self.persona, 'channel': self.channel,
                'expected': self.expected, 'actual': self.actual}


class NegativeShareError(InconsistentTotalsError):
    code = 'negative_share'

    def __init__(self, persona, channel, field, value):
        super().__init__(
            persona, channel, expected=None, actual=value,
            message=f"Negative value {value!r} for {field} in {persona}/{channel}.",
        )
        self.field = field

    def context(self):
        ctx = super().context()
        ctx['field'] = self.field
        return ctx


# --- Business-rule errors ---

class DuplicateFileError(FeeCommissionError):
    status_code = 409
    category = 'business_rule'
    code = 'duplicate_file'

    def __init__(self, file_name, record_id, created_at):
        when = created_at.strftime('%Y-%m-%d %H:%M:%S') if created_at else 'an earlier date'
        super().__init__(f"'{file_name}' was already processed on {when}.")
        self.file_name = file_name
        self.record_id = record_id
        self.created_at = created_at

    def context(self):
        return {
            'file_name': self.file_name,
            'record_id': self.record_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class UnsupportedSchemeTypeError(FeeCommissionError):
    status_code = 422
    category = 'business_rule'
    code = 'unsupported_scheme_type'

    def __init__(self, scheme_type):
        label = getattr(scheme_type, 'value', scheme_type)
        super().__init__(f"{label} scheme type is not yet supported. Only Regular is available.")
        self.scheme_type = label

    def context(self):
        return {'scheme_type': self.scheme_type}


# --- Retrieval errors ---

class RecordNotFoundError(FeeCommissionError):
    status_code = 404
    category = 'not_found'
    code = 'record_not_found'

    def __init__(self, record_id):
        super().__init__(f"No calculation found with id '{record_id}'.")
        self.record_id = record_id

    def context(self):
        return {'record_id': self.record_id}


class ImmutableRecordError(FeeCommissionError):
    status_code = 409
    category = 'business_rule'
    code = 'immutable_record'
