# tests/test_cli.py

import json

from conftest import build_workbook


def test_calculate_command_prints_the_breakdown(app, tmp_path):
    path = tmp_path / 'Fee-Commission Scheme for Acme Corp_v2.xlsx'
    path.write_bytes(build_workbook())

    result = app.test_cli_runner().invoke(args=['calculate', str(path), '--submitted-by', 'ops'])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload['biller_name'] == 'Acme Corp'
    assert payload['submitted_by'] == 'ops'
    assert payload['breakdown']['customer']['ussd']['feeRate'] == '1.20'


def test_calculate_command_reports_engine_errors(app, tmp_path):
    path = tmp_path / 'scheme.xlsx'
    path.write_bytes(build_workbook())
    runner = app.test_cli_runner()

    unsupported = runner.invoke(args=['calculate', str(path), '--scheme-type', 'EMI Biller'])
    runner.invoke(args=['calculate', str(path)])
    duplicate = runner.invoke(args=['calculate', str(path)])

    assert unsupported.exit_code != 0
    assert 'EMI Biller' in unsupported.output
    assert duplicate.exit_code != 0
    assert 'already processed' in duplicate.output


def test_history_command_lists_newest_first(app, tmp_path):
    runner = app.test_cli_runner()
    for name in ('Fee-Commission Scheme - Acme Corp - final.xlsx', 'Fee-Commission Scheme for Beta_v1.xlsx'):
        path = tmp_path / name
        path.write_bytes(build_workbook())
        assert runner.invoke(args=['calculate', str(path)]).exit_code == 0

    result = runner.invoke(args=['history'])

    lines = result.output.strip().splitlines()
    assert 'Beta' in lines[0]
    assert 'Acme Corp' in lines[1]
    assert 'No calculations found.' in runner.invoke(args=['history', '-q', 'zeta']).output
