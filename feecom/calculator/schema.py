# ==============================================================================
# feecom/calculator/schema.py
# ------------------------------------------------------------------------------
# Defines the expected cell layout of an uploaded fee-commission scheme file.
# This table is the single source of truth for the extractor and the engine:
# moving a cell in the workbook template is an edit here and nowhere else.
# ==============================================================================

import enum
from collections import namedtuple


class SchemeType(enum.Enum):
    """Classification of an uploaded fee-commission scheme."""
    REGULAR = 'Regular'
    DROP_POINT = 'Drop Point'
    EMI_BILLER = 'EMI Biller'

    @classmethod
    def parse(cls, value):
        """
        Accepts a member, its display value ('Drop Point'), its name
        ('DROP_POINT') or the compact spelling ('DropPoint'), ignoring case.
        """
        if isinstance(value, cls):
            return value
        key = str(value or '').replace(' ', '').replace('_', '').lower()
        for member in cls:
            if key in (member.value.replace(' ', '').lower(), member.name.replace('_', '').lower()):
                return member
        raise ValueError(f"Unknown scheme type: {value!r}")

    @property
    def is_supported(self):
        return self in LAYOUTS


PERSONAS = ('uddokta', 'customer')
CHANNELS = ('app', 'ussd')

# Commission tiers per persona, in the order they appear in exports.
# 'adjustment' is always derived and never has a cell.
PERSONA_SHARES = {
    'uddokta': ('senderAgent', 'parentDistributor', 'masterDistributor', 'twltSp', 'bpoPp'),
    'customer': ('masterDistributor', 'twltSp', 'bpoPp'),
}

# Optional cells may be left blank in the template and read as 0.0.
FieldSpec = namedtuple('FieldSpec', ['cell', 'persona', 'channel', 'component', 'required'], defaults=(True,))


class CellLayout:
    """A versioned mapping of semantic field names to worksheet cells."""

    def __init__(self, version, fields):
        self.version = version
        self.fields = dict(fields)

    def __iter__(self):
        return iter(self.fields.items())

    def __len__(self):
        return len(self.fields)

    def field_name(self, persona, channel, component):
        for name, spec in self.fields.items():
            if (spec.persona, spec.channel, spec.component) == (persona, channel, component):
                return name
        raise KeyError(f"No cell mapped for {component} in {persona}/{channel}")


REGULAR_LAYOUT = CellLayout('regular-v1', {
    # --- Uddokta initiated, APP (row 4) ---
    'fee_rate_app_uddokta':           FieldSpec('E4',   'uddokta', 'app', 'feeRate'),
    'sender_agent_app_uddokta':       FieldSpec('W4',   'uddokta', 'app', 'senderAgent'),
    'parent_distributor_app_uddokta': FieldSpec('AE4',  'uddokta', 'app', 'parentDistributor'),
    'master_distributor_app_uddokta': FieldSpec('AU4',  'uddokta', 'app', 'masterDistributor'),
    'twlt_sp_app_uddokta':            FieldSpec('BA4',  'uddokta', 'app', 'twltSp'),
    'bpo_pp_app_uddokta':             FieldSpec('BC4',  'uddokta', 'app', 'bpoPp'),
    # --- Uddokta initiated, USSD (row 6) ---
    'fee_rate_ussd_uddokta':           FieldSpec('E6',  'uddokta', 'ussd', 'feeRate'),
    'sender_agent_ussd_uddokta':       FieldSpec('W6',  'uddokta', 'ussd', 'senderAgent'),
    'parent_distributor_ussd_uddokta': FieldSpec('AE6', 'uddokta', 'ussd', 'parentDistributor'),
    'master_distributor_ussd_uddokta': FieldSpec('AU6', 'uddokta', 'ussd', 'masterDistributor'),
    'twlt_sp_ussd_uddokta':            FieldSpec('BA6', 'uddokta', 'ussd', 'twltSp'),
    'bpo_pp_ussd_uddokta':             FieldSpec('BC6', 'uddokta', 'ussd', 'bpoPp'),
    # --- Customer initiated, APP (row 8) ---
    'fee_rate_app_customer':           FieldSpec('E8',  'customer', 'app', 'feeRate'),
    'sender_agent_app_customer':       FieldSpec('W8',  'customer', 'app', 'senderAgent', required=False),
    'parent_distributor_app_customer': FieldSpec('AE8', 'customer', 'app', 'parentDistributor', required=False),
    'master_distributor_app_customer': FieldSpec('AU8', 'customer', 'app', 'masterDistributor'),
    'twlt_sp_app_customer':            FieldSpec('BA8', 'customer', 'app', 'twltSp'),
    'bpo_pp_app_customer':             FieldSpec('BC8', 'customer', 'app', 'bpoPp'),
    # --- Customer initiated, USSD (row 10) ---
    'fee_rate_ussd_customer':           FieldSpec('E10',  'customer', 'ussd', 'feeRate'),
    'sender_agent_ussd_customer':       FieldSpec('W10',  'customer', 'ussd', 'senderAgent', required=False),
    'parent_distributor_ussd_customer': FieldSpec('AE10', 'customer', 'ussd', 'parentDistributor', required=False),
    'master_distributor_ussd_customer': FieldSpec('AU10', 'customer', 'ussd', 'masterDistributor'),
    'twlt_sp_ussd_customer':            FieldSpec('BA10', 'customer', 'ussd', 'twltSp'),
    'bpo_pp_ussd_customer':             FieldSpec('BC10', 'customer', 'ussd', 'bpoPp'),
})

# Scheme types with a calculable layout. Everything else is declared but pending.
LAYOUTS = {
    SchemeType.REGULAR: REGULAR_LAYOUT,
}

PENDING_SCHEME_TYPES = frozenset({SchemeType.DROP_POINT, SchemeType.EMI_BILLER})
