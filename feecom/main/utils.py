# ==============================================================================
# feecom/main/utils.py
# ------------------------------------------------------------------------------
# Turns stored breakdowns into tabular exports for download.
# ==============================================================================
import re

import pandas as pd

from feecom.calculator.engine import format_share
from feecom.calculator.schema import CHANNELS, PERSONAS

EXPORT_COLUMNS = [
    ('Fee Rate', 'feeRate'),
    ('Sender Agent', 'senderAgent'),
    ('Parent Distributor', 'parentDistributor'),
    ('Master Distributor', 'masterDistributor'),
    ('TWTL/SP', 'twltSp'),
    ('BPO/PP', 'bpoPp'),
    ('Advance Commission', 'adjustment'),
]

def breakdown_to_frame(breakdown):
    """
    Flattens a breakdown into one row per persona/channel, each value rendered
    with its display precision. Tiers a persona does not have show as 'N/A'.
    """
    rows = []
    for persona in PERSONAS:
        for channel in CHANNELS:
            values = breakdown.get(persona, {}).get(channel)
            if values is None:
                continue
            row = {'Category': persona.upper(), 'Channel': channel.upper()}
            for column, key in EXPORT_COLUMNS:
                value = values['feeRate'] if key == 'feeRate' else values['commissions'].get(key)
                row[column] = 'N/A' if value is None else format_share(key, value)
            rows.append(row)
    return pd.DataFrame(rows, columns=['Category', 'Channel'] + [column for column, _ in EXPORT_COLUMNS])

def export_filename(record):
    """Download name like the portal's 'Fee-Commission_Results_<biller>_<timestamp>.csv'."""
    safe_biller = re.sub(r'[^a-zA-Z0-9]', '_', record.biller_name)
    stamp = record.created_at.strftime('%Y%m%d%H%M%S')
    return f"Fee-Commission_Results_{safe_biller}_{stamp}.csv"

def export_results_csv(record):
    """Renders a record's breakdown as CSV text."""
    return breakdown_to_frame(record.breakdown).to_csv(index=False)
