"""Canonical recipe schema mapping and unit/quantity normalization."""

from .normalizer import (
    ResultNormalizer,
    build_deep_link,
    failure_message,
    span_for,
    validate_provenance,
)
from .units import (
    extract_time_info,
    normalize_ingredient_name,
    normalize_quantity,
    normalize_unit,
    parse_duration_minutes,
    parse_ingredient_line,
    parse_iso_duration,
    parse_timestamp,
)

__all__ = [
    "ResultNormalizer",
    "build_deep_link",
    "extract_time_info",
    "failure_message",
    "normalize_ingredient_name",
    "normalize_quantity",
    "normalize_unit",
    "parse_duration_minutes",
    "parse_ingredient_line",
    "parse_iso_duration",
    "parse_timestamp",
    "span_for",
    "validate_provenance",
]
