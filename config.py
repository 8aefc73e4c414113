# ==============================================================================
# config.py
# ------------------------------------------------------------------------------
# Configuration settings for the Fee-Commission Flask application.
# Uses environment variables for sensitive data to keep them out of version control.
# ==============================================================================

import os
from dotenv import load_dotenv

# Determine the absolute path of the project directory
basedir = os.path.abspath(os.path.dirname(__file__))

# Load environment variables from a .env file located in the project root
load_dotenv(os.path.join(basedir, '.env'))

class Config:
    """
    Base configuration class. Contains default settings that can be overridden
    by environment-specific configurations.
    """
    # --- Security ---
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-should-really-set-a-secret-key-in-your-env-file'

    # --- Database Configuration ---
    # SQLite in the 'instance' folder unless DATABASE_URL points elsewhere.
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'instance/feecom.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # --- File Upload Configuration ---
    ALLOWED_EXTENSIONS = {'.xlsx'}
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024

    # --- Calculation Engine ---
    # Allowed gap between the summed commission shares and the fee rate (percent basis).
    FEECOM_TOLERANCE = float(os.environ.get('FEECOM_TOLERANCE') or 1e-6)

    # --- History Search ---
    HISTORY_DEFAULT_LIMIT = int(os.environ.get('HISTORY_DEFAULT_LIMIT') or 20)
    HISTORY_MAX_LIMIT = int(os.environ.get('HISTORY_MAX_LIMIT') or 100)

    LOG_LEVEL = os.environ.get('LOG_LEVEL') or 'INFO'
