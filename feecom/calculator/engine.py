# ==============================================================================
# feecom/calculator/engine.py
# ------------------------------------------------------------------------------
# Derives the multi-tier commission breakdown from the raw cell values.
# ==============================================================================

import logging

from .errors import InconsistentTotalsError, NegativeShareError
from .schema import CHANNELS, PERSONAS, PERSONA_SHARES, REGULAR_LAYOUT

DEFAULT_TOLERANCE = 1e-6

# Decimal places per output key. Anything not listed uses DEFAULT_PRECISION.
FORMAT_PRECISION = {
    'feeRate': 2,
    'twltSp': 5,
    'bpoPp': 5,
}
DEFAULT_PRECISION = 9


# --- Helper Functions ---

def _channel_inputs(raw_fields, layout, persona, channel):
    """Picks the fee rate and the extracted shares for one persona/channel."""
    fee_rate = raw_fields[layout.field_name(persona, channel, 'feeRate')]
    shares = {key: raw_fields[layout.field_name(persona, channel, key)] for key in PERSONA_SHARES[persona]}
    return fee_rate, shares


def _unpaid_inputs(raw_fields, layout, persona, channel):
    """Values the layout records for tiers this persona does not pay."""
    paid = set(PERSONA_SHARES[persona]) | {'feeRate'}
    return {spec.component: raw_fields.get(name, 0.0) for name, spec in layout
            if (spec.persona, spec.channel) == (persona, channel) and spec.component not in paid}


def _calculate_channel(persona, channel, fee_rate, shares, tolerance, unpaid=None):
    if fee_rate < 0:
        raise NegativeShareError(persona, channel, 'feeRate', fee_rate)
    for key, value in shares.items():
        if value < 0:
            raise NegativeShareError(persona, channel, key, value)
    for key, value in (unpaid or {}).items():
        if abs(value) > tolerance:
            raise InconsistentTotalsError(
                persona, channel, 0.0, value,
                message=(f"{persona.capitalize()} {channel} schemes do not pay {key}, "
                         f"but the workbook allocates {value!r} to it."),
            )

    # Checked on the raw fractions too, where a zero fee rate cannot mask it.
    allocated = sum(shares.values())
    if allocated > 1 + tolerance:
        raise InconsistentTotalsError(
            persona, channel, 1.0, allocated,
            message=f"Commission shares for {persona}/{channel} allocate {allocated!r} of the fee (more than 100%).",
        )

    fee_rate_percent = fee_rate * 100
    commissions = {key: share * fee_rate_percent for key, share in shares.items()}
    commissions['adjustment'] = fee_rate_percent - sum(commissions.values())

    if commissions['adjustment'] < -tolerance:
        raise InconsistentTotalsError(
            persona, channel, fee_rate_percent, sum(commissions.values()) - commissions['adjustment'],
            message=(f"Commission shares for {persona}/{channel} exceed the fee rate of "
                     f"{fee_rate_percent!r} (advance commission would be {commissions['adjustment']!r})."),
        )

    total = sum(commissions.values())
    if abs(total - fee_rate_percent) > tolerance:
        raise InconsistentTotalsError(persona, channel, fee_rate_percent, total)

    story = [
        f"\n--- Audit Log for {persona.upper()} / {channel.upper()} ---",
        f"  - Fee Rate   : {fee_rate!r} -> {fee_rate_percent!r}%",
    ]
    for key, share in shares.items():
        story.append(f"  - {key:<18}: {share!r} * {fee_rate_percent!r} = {commissions[key]!r}")
    story.append(f"  - adjustment        : {fee_rate_percent!r} - sum(shares) = {commissions['adjustment']!r}")
    story.append(f"  => Reconciled total : {total!r}")
    logging.debug("\n".join(story))

    return {'feeRate': fee_rate_percent, 'commissions': commissions}


# --- Main Calculation ---

def calculate_breakdown(raw_fields, tolerance=DEFAULT_TOLERANCE, layout=REGULAR_LAYOUT):
    """
    Computes the commission breakdown for every persona and channel.

    Fee rates arrive as fractions (0.015) and become percentages (1.5). Each
    extracted share is a fraction of the fee, so its commission figure is the
    share times the fee rate percent. The adjustment (advance commission) is
    whatever is left of the fee rate after the itemised shares.

    Args:
        raw_fields (dict): field name -> float, as produced by the extractor.
        tolerance (float): allowed gap between the summed shares and the fee rate.
        layout (CellLayout): coordinate table that names the raw fields.

    Returns:
        dict: persona -> channel -> {'feeRate': float, 'commissions': {...}}
    """
    logging.info("=" * 60)
    logging.info(f"STARTING FEE-COMMISSION CALCULATION (layout {layout.version})")
    logging.info("=" * 60)

    breakdown = {}
    for persona in PERSONAS:
        for channel in CHANNELS:
            fee_rate, shares = _channel_inputs(raw_fields, layout, persona, channel)
            breakdown.setdefault(persona, {})[channel] = _calculate_channel(
                persona, channel, fee_rate, shares, tolerance,
                unpaid=_unpaid_inputs(raw_fields, layout, persona, channel),
            )

    logging.info("--- Calculation finished. All channels reconcile to their fee rate. ---")
    return breakdown


# --- Presentation ---

def format_share(key, value):
    """Renders one breakdown value with the precision its key calls for."""
    if value is None:
        return None
    text = f"{value:.{FORMAT_PRECISION.get(key, DEFAULT_PRECISION)}f}"
    # A residual of -1e-17 must not render as "-0.000000000".
    if text.startswith('-') and not text.strip('-0.'):
        text = text[1:]
    return text


def format_breakdown(breakdown):
    """Returns a copy of the breakdown with every number rendered as a fixed-precision string."""
    formatted = {}
    for persona, channels in breakdown.items():
        for channel, values in channels.items():
            formatted.setdefault(persona, {})[channel] = {
                'feeRate': format_share('feeRate', values['feeRate']),
                'commissions': {key: format_share(key, value) for key, value in values['commissions'].items()},
            }
    return formatted
