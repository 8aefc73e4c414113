from .engine import calculate_breakdown, format_breakdown, format_share
from .extractor import extract_raw_fields
from .schema import LAYOUTS, REGULAR_LAYOUT, SchemeType
