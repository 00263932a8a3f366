"""Utility modules for nearswap."""

from nearswap.utils.amounts import (
    base_units_to_display,
    coerce_base_units,
    format_amount,
    from_base_units,
    parse_amount,
    to_base_units,
    validate_decimals,
)
from nearswap.utils.fields import FieldSpec, extract, extract_all, probe

__all__ = [
    "base_units_to_display",
    "coerce_base_units",
    "format_amount",
    "from_base_units",
    "parse_amount",
    "to_base_units",
    "validate_decimals",
    "FieldSpec",
    "extract",
    "extract_all",
    "probe",
]
