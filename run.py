# ==============================================================================
# run.py
# ------------------------------------------------------------------------------
# The main entry point to launch the Flask application.
# ==============================================================================

from feecom import create_app, db
from feecom.models import CalculationRecord

# Create the Flask application instance using the factory function
app = create_app()

@app.shell_context_processor
def make_shell_context():
    """Provides a shell context for the `flask shell` command."""
    return {
        'db': db,
        'CalculationRecord': CalculationRecord,
    }

if __name__ == '__main__':
    app.run(debug=True)
