"""
Field validation functions.

This module provides the validations used while turning raw TOML data into
configuration dataclasses.
"""

from typing import Any, Dict, List, Optional, Union

from .exceptions import ValidationError


def validate_positive_integer(
    value: Any,
    min_value: int = 1,
    max_value: Optional[int] = None,
    field_name: str = "value"
) -> int:
    """
    Validate that a value is an integer within bounds.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated integer value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        int_value = int(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    if int_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and int_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    return int_value


def validate_boolean(value: Any, field_name: str = "value") -> bool:
    """
    Validate that a value is a boolean.

    Raises:
        ValidationError: If the value is not a bool
    """
    if not isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a boolean, got {value!r}",
            field_name=field_name,
            value=value
        )
    return value


def validate_non_empty_string(value: Any, field_name: str = "value") -> str:
    """
    Validate that a value is a string with non-whitespace content.

    Args:
        value: Value to validate
        field_name: Name of the field being validated

    Returns:
        The stripped string

    Raises:
        ValidationError: If validation fails
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            f"{field_name} must be a non-empty string, got {value!r}",
            field_name=field_name,
            value=value
        )
    return value.strip()


def validate_string_list(
    value: Any,
    field_name: str = "value",
    allow_empty: bool = True
) -> List[str]:
    """
    Validate a list of non-empty strings. A bare string is accepted as a
    single-element list.

    Args:
        value: Value to validate
        field_name: Name of the field being validated
        allow_empty: Whether an empty list is acceptable

    Returns:
        Validated list of strings

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        raise ValidationError(
            f"{field_name} must be a string or a list of strings, got {type(value).__name__}",
            field_name=field_name,
            value=value
        )
    if not value and not allow_empty:
        raise ValidationError(
            f"{field_name} must not be empty",
            field_name=field_name,
            value=value
        )
    return [
        validate_non_empty_string(item, field_name=f"{field_name}[{i}]")
        for i, item in enumerate(value)
    ]


def validate_input_spec(
    value: Any,
    field_name: str = "input"
) -> Union[str, List[str], Dict[str, str]]:
    """
    Validate a bundle input specification.

    Accepts a single path, a non-empty ordered list of paths, or a non-empty
    mapping of entry names to paths.

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, str):
        return validate_non_empty_string(value, field_name=field_name)
    if isinstance(value, list):
        return validate_string_list(value, field_name=field_name, allow_empty=False)
    if isinstance(value, dict):
        if not value:
            raise ValidationError(
                f"{field_name} must not be empty",
                field_name=field_name,
                value=value
            )
        return {
            validate_non_empty_string(key, field_name=f"{field_name} key"):
                validate_non_empty_string(path, field_name=f"{field_name}.{key}")
            for key, path in value.items()
        }
    raise ValidationError(
        f"{field_name} must be a path, a list of paths or a table of named paths",
        field_name=field_name,
        value=value
    )

