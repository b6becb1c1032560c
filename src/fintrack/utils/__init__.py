"""Utility functions for fintrack."""

from fintrack.utils.date_parser import parse_date, detect_date_format
from fintrack.utils.amount_parser import parse_amount, to_minor_units, format_minor_units
from fintrack.utils.encoding import decode_bytes

__all__ = [
    "parse_date",
    "detect_date_format",
    "parse_amount",
    "to_minor_units",
    "format_minor_units",
    "decode_bytes",
]
