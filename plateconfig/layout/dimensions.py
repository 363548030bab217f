"""Plate dimension values — parsing, validation, clamping, sanitising.

The dimension store keeps what the user typed (decimal strings).  The
geometry core only ever sees ``PlateDimension`` values produced by
``parse_plate``, which maps anything non-numeric to a zero-sized plate.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

from plateconfig.config import DIMENSION_RULES, DimensionRules

from .models import PlateDimension


@dataclass(frozen=True)
class DimensionValue:
    """Raw width/height strings as entered (cm)."""

    width: str
    height: str


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    error: str | None = None


@dataclass(frozen=True)
class DimensionValidationResult:
    width: ValidationResult
    height: ValidationResult

    @property
    def is_valid(self) -> bool:
        return self.width.is_valid and self.height.is_valid


@dataclass(frozen=True)
class ClampedValue:
    value: float
    was_clamped: bool
    original_value: float


_LEADING_NUMBER = re.compile(r"^\s*[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?")


def parse_decimal(value: str | float | int | None) -> float | None:
    """Parse the leading decimal number of *value*.

    Accepts trailing junk the way a lenient form field does
    (``"12.5cm"`` → 12.5).  Returns ``None`` when there is no number or it
    is not finite, and for anything that is neither text nor a number.
    """
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if not isinstance(value, str):
        return None
    m = _LEADING_NUMBER.match(value)
    if not m:
        return None
    num = float(m.group(0))
    return num if math.isfinite(num) else None


def parse_dimension_value(value: str | float | int | None) -> float:
    """Dimension in cm; malformed input counts as 0 (zero-sized plate)."""
    num = parse_decimal(value)
    return 0.0 if num is None else num


def parse_plate(dim: DimensionValue) -> PlateDimension:
    return PlateDimension(
        width_cm=parse_dimension_value(dim.width),
        height_cm=parse_dimension_value(dim.height),
    )


def is_valid_number(value: str) -> bool:
    if not value or not value.strip():
        return False
    return parse_decimal(value) is not None


def validate_dimension_value(
    value: str, field_name: str, rules: DimensionRules = DIMENSION_RULES,
) -> ValidationResult:
    """Check that *value* is a number inside the allowed range."""
    if not is_valid_number(value):
        return ValidationResult(False, "Please enter a valid number")

    num = parse_decimal(value)
    rule = rules.for_field(field_name)
    if num < rule.min:
        return ValidationResult(False, f"Minimum {field_name} is {rule.min:g}{rule.unit}")
    if num > rule.max:
        return ValidationResult(False, f"Maximum {field_name} is {rule.max:g}{rule.unit}")
    return ValidationResult(True)


def validate_dimensions(
    dim: DimensionValue, rules: DimensionRules = DIMENSION_RULES,
) -> DimensionValidationResult:
    return DimensionValidationResult(
        width=validate_dimension_value(dim.width, "width", rules),
        height=validate_dimension_value(dim.height, "height", rules),
    )


def validate_all_dimensions(
    dims: list[DimensionValue], rules: DimensionRules = DIMENSION_RULES,
) -> bool:
    return all(validate_dimensions(d, rules).is_valid for d in dims)


def clamp_dimension_value(
    value: str, field_name: str, rules: DimensionRules = DIMENSION_RULES,
) -> ClampedValue:
    """Clamp into the allowed range; non-numbers fall back to the default."""
    rule = rules.for_field(field_name)
    if not is_valid_number(value):
        return ClampedValue(value=float(rule.default), was_clamped=True, original_value=math.nan)
    num = parse_decimal(value)
    clamped = max(rule.min, min(rule.max, num))
    return ClampedValue(value=float(clamped), was_clamped=clamped != num, original_value=num)


def clamp_dimensions(
    dim: DimensionValue, rules: DimensionRules = DIMENSION_RULES,
) -> DimensionValue:
    return DimensionValue(
        width=format_number(clamp_dimension_value(dim.width, "width", rules).value),
        height=format_number(clamp_dimension_value(dim.height, "height", rules).value),
    )


def validate_plate_count(count: int, rules: DimensionRules = DIMENSION_RULES) -> ValidationResult:
    if count < rules.min_plates:
        return ValidationResult(False, f"Minimum {rules.min_plates} plate(s) required")
    return ValidationResult(True)


def can_delete_plate(current_count: int, rules: DimensionRules = DIMENSION_RULES) -> bool:
    """At least ``min_plates`` must remain."""
    return current_count > rules.min_plates


def sanitize_numeric_input(value: str) -> str:
    """Strip everything but digits, one decimal point and a leading minus."""
    sanitized = re.sub(r"[^\d.\-]", "", value)

    parts = sanitized.split(".")
    if len(parts) > 2:
        sanitized = parts[0] + "." + "".join(parts[1:])

    if "-" in sanitized:
        leading = sanitized.startswith("-")
        sanitized = sanitized.replace("-", "")
        if leading:
            sanitized = "-" + sanitized
    return sanitized


def format_number(value: float, decimals: int = 2) -> str:
    """Shortest decimal string with at most *decimals* places.

    ``12.0`` → ``"12"``, ``12.346`` → ``"12.35"``.
    """
    text = f"{round(value, decimals):.{decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def cm_to_mm(cm: str | float) -> float:
    num = parse_decimal(cm)
    return 0.0 if num is None else num * 10


def default_dimension(rules: DimensionRules = DIMENSION_RULES) -> DimensionValue:
    return DimensionValue(
        width=format_number(rules.width.default),
        height=format_number(rules.height.default),
    )


def initial_dimension(rules: DimensionRules = DIMENSION_RULES) -> DimensionValue:
    """The plate shown before the user has entered anything."""
    return DimensionValue(width=rules.initial_width, height=rules.initial_height)
