"""Field validation rules for dose and outcome forms."""

import re

from insula_client.domain.predictions import (
    MAX_GLUCOSE_OBJECTIVE,
    MIN_GLUCOSE_OBJECTIVE,
)

GLUCOSE_INPUT_PATTERN = re.compile(r"^[0-9]{0,3}$")
DECIMAL_PATTERN = re.compile(r"^\d+([.,]\d{0,2})?$")
OBJECTIVE_PATTERN = re.compile(r"^\d{1,3}$")
LEVEL_PATTERN = re.compile(r"^([1-9]|10)$")


def is_glucose_input_allowed(value: str) -> bool:
    """Return whether a glucose slot may hold ``value``.

    Zero is refused in any spelling ("0", "00", "000").
    """
    if not GLUCOSE_INPUT_PATTERN.match(value):
        return False
    return value == "" or int(value) != 0


def is_glucose_entry(value: str) -> bool:
    """Return whether a slot holds a usable reading."""
    return value != "" and is_glucose_input_allowed(value)


def is_valid_decimal(value: str) -> bool:
    """Non-negative number with at most two decimals, ``.`` or ``,``."""
    return bool(DECIMAL_PATTERN.match(value))


def parse_decimal(value: str) -> float:
    """Parse a decimal field, normalizing a comma separator."""
    return float(value.replace(",", "."))


def is_valid_objective(value: str) -> bool:
    """Target glucose between 80 and 180 mg/dL inclusive."""
    if not OBJECTIVE_PATTERN.match(value):
        return False
    return MIN_GLUCOSE_OBJECTIVE <= int(value) <= MAX_GLUCOSE_OBJECTIVE


def is_valid_level(value: str) -> bool:
    """Integer score from 1 to 10."""
    return bool(LEVEL_PATTERN.match(value))


def parse_optional_dose(value: str) -> float | None:
    """Parse an applied-dose input; blank or malformed input yields None."""
    cleaned = value.strip()
    if not cleaned or not is_valid_decimal(cleaned):
        return None
    return parse_decimal(cleaned)
