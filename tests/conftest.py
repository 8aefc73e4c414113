# tests/conftest.py

from io import BytesIO

import openpyxl
import pytest

from config import Config


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    WTF_CSRF_ENABLED = False
    HISTORY_DEFAULT_LIMIT = 20
    HISTORY_MAX_LIMIT = 50


# A realistic Regular scheme: fee rates as fractions, shares as fractions of the fee.
SAMPLE_CELLS = {
    # Uddokta APP
    'E4': 0.015, 'W4': 0.3, 'AE4': 0.3, 'AU4': 0.3, 'BA4': 0.00003, 'BC4': 0.00002,
    # Uddokta USSD
    'E6': 0.0185, 'W6': 0.25, 'AE6': 0.2, 'AU6': 0.35, 'BA6': 0.00004, 'BC6': 0.00001,
    # Customer APP
    'E8': 0.01, 'AU8': 0.45, 'BA8': 0.00005, 'BC8': 0.00002,
    # Customer USSD
    'E10': 0.012, 'AU10': 0.5, 'BA10': 0.00003, 'BC10': 0.00003,
}


def build_workbook(cells=None, overrides=None, extra_sheets=(), sheet_title='Fee-Commission'):
    """Builds an .xlsx file in memory and returns its bytes."""
    values = dict(SAMPLE_CELLS if cells is None else cells)
    values.update(overrides or {})

    workbook = openpyxl.Workbook()
    worksheet = workbook.active
    worksheet.title = sheet_title
    worksheet['A1'] = 'Fee-Commission Scheme'
    for coordinate, value in values.items():
        worksheet[coordinate] = value
    for title in extra_sheets:
        workbook.create_sheet(title)

    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def workbook_bytes():
    return build_workbook()


@pytest.fixture
def app():
    """
    Creates a new app instance for each test with an in-memory database,
    and yields the app within an application context.
    """
    from feecom import create_app, db

    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()
