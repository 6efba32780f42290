"""
Validation engine for wizard steps.

Pure and synchronous: given field descriptors and the current value bag it
returns an error map keyed by field name. Errors are returned as data and never
raised, so the engine can run on every change event.
"""

import re
from typing import Dict, Any, List, Optional, Union
import logging

from .descriptors import FieldDescriptor, FieldType, parse_fields

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
PHONE_PATTERN = re.compile(r'^[\d\s+()-]{10,}$')

# Reserved error map keys for whole-step errors
CATALOG_ERROR_KEY = "_catalog"
HOURS_ERROR_KEY = "_hours"

MSG_REQUIRED = "{label} zorunludur"
MSG_MIN_LENGTH = "En az {limit} karakter olmalıdır"
MSG_MAX_LENGTH = "En fazla {limit} karakter olabilir"
MSG_MIN_VALUE = "Minimum değer {limit} olmalıdır"
MSG_MAX_VALUE = "Maksimum değer {limit} olabilir"
MSG_PATTERN = "Geçersiz format"
MSG_EMAIL = "Geçerli bir email adresi girin"
MSG_PHONE = "Geçerli bir telefon numarası girin"

ErrorMap = Dict[str, str]


def is_empty(value: Any) -> bool:
    """A value counts as empty when it is missing, None or an empty string."""
    return value is None or (isinstance(value, str) and value == '')


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _format_limit(limit: float) -> str:
    # 6.0 -> "6", 6.5 -> "6.5"
    if isinstance(limit, float) and limit.is_integer():
        return str(int(limit))
    return str(limit)


def validate_field(field: FieldDescriptor, value: Any) -> Optional[str]:
    """
    Validate a single value against its descriptor.

    Rules are applied in order and the first failing rule wins.

    Args:
        field: Field descriptor
        value: Current value from the value bag

    Returns:
        Error message, or None when the value is acceptable
    """
    if field.required and is_empty(value):
        return MSG_REQUIRED.format(label=field.label)

    # Optional and blank: nothing else applies
    if not field.required and not value:
        return None

    rules = field.validation
    if rules is not None:
        if isinstance(value, str):
            if rules.min_length and len(value) < rules.min_length:
                return MSG_MIN_LENGTH.format(limit=rules.min_length)
            if rules.max_length and len(value) > rules.max_length:
                return MSG_MAX_LENGTH.format(limit=rules.max_length)

        if _is_number(value):
            if rules.min is not None and value < rules.min:
                return MSG_MIN_VALUE.format(limit=_format_limit(rules.min))
            if rules.max is not None and value > rules.max:
                return MSG_MAX_VALUE.format(limit=_format_limit(rules.max))

        if rules.pattern and isinstance(value, str) and field.type != FieldType.CHECKBOX:
            try:
                if not re.search(rules.pattern, value):
                    return rules.pattern_message or MSG_PATTERN
            except re.error as e:
                logger.error(f"Invalid regex pattern for field {field.name}: {rules.pattern} ({e})")

    if field.type == FieldType.EMAIL and value:
        if not isinstance(value, str) or not EMAIL_PATTERN.match(value):
            return MSG_EMAIL

    if field.type == FieldType.TEL and value:
        if not isinstance(value, str) or not PHONE_PATTERN.match(value):
            return MSG_PHONE

    return None


def validate(descriptors: List[Union[FieldDescriptor, Dict[str, Any]]], values: Dict[str, Any]) -> ErrorMap:
    """
    Validate a value bag against a list of field descriptors.

    Args:
        descriptors: Field descriptors (models or raw schema dicts)
        values: Value bag keyed by field name

    Returns:
        Error map keyed by field name; empty when everything is valid
    """
    errors: ErrorMap = {}
    values = values or {}

    for field in parse_fields(descriptors):
        message = validate_field(field, values.get(field.name))
        if message is not None:
            errors[field.name] = message

    if errors:
        logger.debug(f"Validation produced {len(errors)} error(s): {sorted(errors)}")
    return errors


def missing_required_labels(descriptors: List[Union[FieldDescriptor, Dict[str, Any]]], record: Dict[str, Any]) -> List[str]:
    """Labels of required fields whose value in ``record`` is falsy."""
    return [
        field.label for field in parse_fields(descriptors)
        if field.required and not record.get(field.name)
    ]
