# ==============================================================================
# feecom/main/forms.py
# ------------------------------------------------------------------------------
# Defines the upload form using Flask-WTF for input validation.
# ==============================================================================

import os

from flask import current_app
from flask_wtf import FlaskForm
from flask_wtf.file import FileField, FileRequired
from wtforms import SelectField, StringField
from wtforms.validators import DataRequired, Length, ValidationError

from feecom.calculator.schema import SchemeType


def allowed_file(filename):
    """Checks the upload's extension against the configured ALLOWED_EXTENSIONS."""
    return '.' in filename and \
           os.path.splitext(filename)[1].lower() in current_app.config['ALLOWED_EXTENSIONS']


class CalculationUploadForm(FlaskForm):
    """Form for submitting a fee-commission scheme workbook."""
    file = FileField('Scheme workbook', validators=[
        FileRequired(message='Please select an Excel file.'),
    ])
    # Every declared scheme type is selectable; unsupported ones are rejected
    # by the engine with an explicit message rather than by the form.
    scheme_type = SelectField(
        'Fee-Comm type',
        choices=[(member.value, member.value) for member in SchemeType],
        default=SchemeType.REGULAR.value,
        validate_choice=False,
    )
    submitted_by = StringField('Submitted by', validators=[
        DataRequired(message='Submitter identity is required.'),
        Length(max=128),
    ])

    def validate_file(self, field):
        if not allowed_file(field.data.filename or ''):
            allowed = ', '.join(sorted(current_app.config['ALLOWED_EXTENSIONS']))
            raise ValidationError(f'Only Excel files are allowed ({allowed}).')

    def validate_scheme_type(self, field):
        # Accept 'DropPoint' / 'EMI_BILLER' spellings as well as the display values.
        try:
            field.data = SchemeType.parse(field.data).value
        except ValueError as e:
            raise ValidationError(str(e))
