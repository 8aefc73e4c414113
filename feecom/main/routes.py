# ==============================================================================
# feecom/main/routes.py
# ------------------------------------------------------------------------------
# JSON endpoints of the fee-commission engine: submit a scheme workbook, load a
# past calculation, search the history and download a result as CSV.
# ==============================================================================

from flask import Response, current_app, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from feecom import db
from feecom.calculator.errors import FeeCommissionError
from feecom.main import bp
from feecom.main.forms import CalculationUploadForm
from feecom.main.utils import export_filename, export_results_csv
from feecom.services import list_calculations, load_calculation, submit_calculation

# --- Error Handlers ---

@bp.errorhandler(FeeCommissionError)
def handle_fee_commission_error(error):
    """Expected engine failures become JSON the caller can show to the user."""
    current_app.logger.warning(f"{error.code}: {error.message}")
    return jsonify(error.to_dict()), error.status_code

@bp.errorhandler(SQLAlchemyError)
def handle_database_error(error):
    db.session.rollback()
    current_app.logger.error(f"Database operation failed: {error}", exc_info=True)
    return jsonify({'success': False, 'error': 'database_error',
                    'message': 'The calculation could not be stored. Please try again later.'}), 500

# --- Calculation Routes ---

@bp.route('/calculations', methods=['POST'])
def create_calculation():
    """Handles a scheme workbook upload and returns the stored calculation."""
    form = CalculationUploadForm(meta={'csrf': False})
    if not form.validate_on_submit():
        errors = [f"{form[name].label.text}: {message}" for name, messages in form.errors.items() for message in messages]
        return jsonify({'success': False, 'error': 'invalid_form', 'errors': errors}), 400

    upload = form.file.data
    content = upload.read()
    record = submit_calculation(content, upload.filename, form.scheme_type.data, form.submitted_by.data)

    current_app.logger.info(f"Calculation {record.public_id} created for '{record.biller_name}' by {record.submitted_by}")
    payload = record.to_dict()
    payload['success'] = True
    return jsonify(payload), 201

@bp.route('/calculations', methods=['GET'])
def search_calculations():
    """Lists past calculations, optionally filtered by biller name."""
    query = request.args.get('q', '')
    limit = request.args.get('limit')
    try:
        limit = int(limit) if limit not in (None, '') else None
        results = list_calculations(query, limit)
    except ValueError:
        return jsonify({'success': False, 'error': 'invalid_limit',
                        'message': 'limit must be a positive integer.'}), 400
    return jsonify({'success': True, 'results': results, 'count': len(results)})

@bp.route('/calculations/<public_id>', methods=['GET'])
def view_calculation(public_id):
    """Returns a past calculation in the same shape as a fresh one."""
    payload = load_calculation(public_id).to_dict()
    payload['success'] = True
    return jsonify(payload)

@bp.route('/calculations/<public_id>/export', methods=['GET'])
def export_calculation(public_id):
    """Downloads a calculation's breakdown as CSV."""
    record = load_calculation(public_id)
    return Response(
        export_results_csv(record),
        mimetype='text/csv',
        headers={'Content-Disposition': f'attachment; filename="{export_filename(record)}"'},
    )
