# tests/test_engine.py

import re

import pytest

from feecom.calculator.engine import calculate_breakdown, format_breakdown, format_share
from feecom.calculator.errors import InconsistentTotalsError, NegativeShareError
from feecom.calculator.schema import REGULAR_LAYOUT

TOLERANCE = 1e-6


@pytest.fixture
def raw_fields():
    """A complete raw-value record keyed the way the extractor produces it."""
    cells = {
        'E4': 0.015, 'W4': 0.3, 'AE4': 0.3, 'AU4': 0.3, 'BA4': 0.00003, 'BC4': 0.00002,
        'E6': 0.0185, 'W6': 0.25, 'AE6': 0.2, 'AU6': 0.35, 'BA6': 0.00004, 'BC6': 0.00001,
        'E8': 0.01, 'AU8': 0.45, 'BA8': 0.00005, 'BC8': 0.00002,
        'E10': 0.012, 'AU10': 0.5, 'BA10': 0.00003, 'BC10': 0.00003,
    }
    return {name: cells.get(spec.cell, 0.0) for name, spec in REGULAR_LAYOUT}


def _with(raw_fields, **overrides):
    updated = dict(raw_fields)
    updated.update(overrides)
    return updated


def test_every_channel_reconciles_to_its_fee_rate(raw_fields):
    breakdown = calculate_breakdown(raw_fields)

    for persona, channels in breakdown.items():
        for channel, values in channels.items():
            total = sum(values['commissions'].values())
            assert abs(total - values['feeRate']) <= TOLERANCE, (persona, channel)


def test_uddokta_app_figures(raw_fields):
    app = calculate_breakdown(raw_fields)['uddokta']['app']

    assert app['feeRate'] == pytest.approx(1.5)
    assert app['commissions']['senderAgent'] == pytest.approx(0.45)
    assert app['commissions']['parentDistributor'] == pytest.approx(0.45)
    assert app['commissions']['masterDistributor'] == pytest.approx(0.45)
    assert app['commissions']['twltSp'] == pytest.approx(0.000045)
    assert app['commissions']['bpoPp'] == pytest.approx(0.00003)
    # 1.5 - (0.45 * 3 + 0.000045 + 0.00003)
    assert app['commissions']['adjustment'] == pytest.approx(0.149925)


def test_adjustment_is_the_residual_of_the_other_shares(raw_fields):
    breakdown = calculate_breakdown(raw_fields)

    for channels in breakdown.values():
        for values in channels.values():
            others = {k: v for k, v in values['commissions'].items() if k != 'adjustment'}
            assert values['commissions']['adjustment'] == values['feeRate'] - sum(others.values())


def test_customer_channels_omit_uddokta_only_tiers(raw_fields):
    breakdown = calculate_breakdown(raw_fields)

    assert set(breakdown['uddokta']['ussd']['commissions']) == {
        'senderAgent', 'parentDistributor', 'masterDistributor', 'twltSp', 'bpoPp', 'adjustment'}
    for channel in ('app', 'ussd'):
        assert set(breakdown['customer'][channel]['commissions']) == {
            'masterDistributor', 'twltSp', 'bpoPp', 'adjustment'}


def test_customer_ussd_adjustment(raw_fields):
    ussd = calculate_breakdown(raw_fields)['customer']['ussd']

    assert ussd['feeRate'] == pytest.approx(1.2)
    assert ussd['commissions']['masterDistributor'] == pytest.approx(0.6)
    assert ussd['commissions']['adjustment'] == pytest.approx(1.2 * (1 - 0.5 - 0.00006))


def test_zero_fee_rate_yields_zero_shares(raw_fields):
    app = calculate_breakdown(_with(raw_fields, fee_rate_app_uddokta=0))['uddokta']['app']

    assert app['feeRate'] == 0
    assert all(value == 0 for value in app['commissions'].values())
    assert format_breakdown({'uddokta': {'app': app}})['uddokta']['app']['commissions']['adjustment'] == '0.000000000'


def test_negative_share_fails_loudly(raw_fields):
    with pytest.raises(NegativeShareError) as excinfo:
        calculate_breakdown(_with(raw_fields, bpo_pp_ussd_customer=-0.0001))

    assert excinfo.value.persona == 'customer'
    assert excinfo.value.channel == 'ussd'
    assert excinfo.value.field == 'bpoPp'


def test_negative_fee_rate_fails_loudly(raw_fields):
    with pytest.raises(NegativeShareError):
        calculate_breakdown(_with(raw_fields, fee_rate_ussd_uddokta=-0.01))


def test_over_allocated_shares_are_inconsistent(raw_fields):
    with pytest.raises(InconsistentTotalsError) as excinfo:
        calculate_breakdown(_with(raw_fields, sender_agent_app_uddokta=0.5, parent_distributor_app_uddokta=0.5))

    assert type(excinfo.value) is InconsistentTotalsError
    assert excinfo.value.persona == 'uddokta'
    assert excinfo.value.channel == 'app'
    assert excinfo.value.to_dict()['category'] == 'consistency'


def test_over_allocation_is_caught_when_fee_rate_is_zero(raw_fields):
    with pytest.raises(InconsistentTotalsError) as excinfo:
        calculate_breakdown(_with(raw_fields, fee_rate_app_uddokta=0, sender_agent_app_uddokta=5.0))

    assert excinfo.value.persona == 'uddokta'
    assert excinfo.value.channel == 'app'
    assert excinfo.value.actual == pytest.approx(5.60005)


def test_customer_sender_agent_share_is_rejected(raw_fields):
    with pytest.raises(InconsistentTotalsError) as excinfo:
        calculate_breakdown(_with(raw_fields, sender_agent_app_customer=0.2, parent_distributor_app_customer=0.1))

    assert excinfo.value.persona == 'customer'
    assert excinfo.value.channel == 'app'
    assert excinfo.value.actual == 0.2
    assert 'senderAgent' in excinfo.value.message


def test_customer_parent_distributor_share_is_rejected(raw_fields):
    with pytest.raises(InconsistentTotalsError) as excinfo:
        calculate_breakdown(_with(raw_fields, parent_distributor_ussd_customer=0.05))

    assert excinfo.value.channel == 'ussd'
    assert 'parentDistributor' in excinfo.value.message


def test_zero_customer_agent_cells_leave_the_breakdown_unchanged(raw_fields):
    customer_app = calculate_breakdown(raw_fields)['customer']['app']

    assert raw_fields['sender_agent_app_customer'] == 0.0
    assert set(customer_app['commissions']) == {'masterDistributor', 'twltSp', 'bpoPp', 'adjustment'}
    assert customer_app['commissions']['adjustment'] == pytest.approx(1.0 - 0.45 - 0.00005 - 0.00002)


def test_shares_summing_to_exactly_the_fee_give_zero_adjustment(raw_fields):
    customer_app = calculate_breakdown(_with(
        raw_fields, master_distributor_app_customer=0.5, twlt_sp_app_customer=0.25, bpo_pp_app_customer=0.25,
    ))['customer']['app']

    assert customer_app['commissions']['adjustment'] == pytest.approx(0, abs=TOLERANCE)


# --- Formatting ---

def test_format_precision_per_key():
    assert format_share('feeRate', 1.5) == '1.50'
    assert format_share('feeRate', 1.23456) == '1.23'
    assert format_share('twltSp', 0.003) == '0.00300'
    assert format_share('bpoPp', 0.002) == '0.00200'
    assert format_share('senderAgent', 30) == '30.000000000'
    assert format_share('parentDistributor', 0.45) == '0.450000000'
    assert format_share('masterDistributor', 0.1234567891234) == '0.123456789'
    assert format_share('adjustment', 9.996) == '9.996000000'


def test_format_share_never_renders_negative_zero():
    assert format_share('adjustment', -1e-17) == '0.000000000'
    assert format_share('twltSp', -2e-12) == '0.00000'
    assert format_share('adjustment', -0.5) == '-0.500000000'


def test_formatted_breakdown_has_fixed_decimals(raw_fields):
    formatted = format_breakdown(calculate_breakdown(raw_fields))

    expected_places = {'twltSp': 5, 'bpoPp': 5}
    for channels in formatted.values():
        for values in channels.values():
            assert re.fullmatch(r'\d+\.\d{2}', values['feeRate'])
            for key, text in values['commissions'].items():
                places = expected_places.get(key, 9)
                assert re.fullmatch(r'-?\d+\.\d{%d}' % places, text), (key, text)

    app = formatted['uddokta']['app']
    assert app['feeRate'] == '1.50'
    assert app['commissions']['senderAgent'] == '0.450000000'
    assert app['commissions']['adjustment'] == '0.149925000'
