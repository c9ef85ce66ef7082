"""
Input Validation - Checks applied to operator input before a box enters the cell.

Validators are pure functions returning a ValidationResult, so a menu or batch
loader can re-prompt or report without catching exceptions. build_box() is the
typed variant used by code that prefers errors over results.
"""
import re
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from interfaces.cell_errors import InvalidArgumentError, DuplicateBoxError
from warehouse.box import Box

# Integer or decimal weight, no sign and no exponent
WEIGHT_PATTERN = re.compile(r"^\d+(\.\d+)?$")
MAX_CONTENT_LENGTH = 200


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one input field."""
    valid: bool
    value: Any = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, value: Any) -> 'ValidationResult':
        return cls(valid=True, value=value)

    @classmethod
    def invalid(cls, error: str) -> 'ValidationResult':
        return cls(valid=False, error=error)


def validate_box_id(box_id: Any, existing_ids: Optional[Iterable[str]] = None) -> ValidationResult:
    """
    Validate a box identifier.

    Args:
        box_id: Raw identifier
        existing_ids: Identifiers already in use in the cell

    Returns:
        ValidationResult: Stripped identifier, or the reason it was rejected
    """
    if box_id is None:
        return ValidationResult.invalid("Box ID is required")
    text = str(box_id).strip()
    if not text:
        return ValidationResult.invalid("Box ID must not be empty")
    if any(ch.isspace() for ch in text):
        return ValidationResult.invalid(f"Box ID must not contain whitespace: {text!r}")
    if existing_ids is not None and text in set(existing_ids):
        return ValidationResult.invalid(
            f"Box ID {text} already exists in storage. Please enter a different ID."
        )
    return ValidationResult.ok(text)


def validate_weight(weight: Any) -> ValidationResult:
    """
    Validate a weight given as text or number.

    Only plain non-negative integers or decimals are accepted ("12", "3.5").

    Returns:
        ValidationResult: Weight in kg as float, or the reason it was rejected
    """
    if weight is None:
        return ValidationResult.invalid("Weight is required")
    if isinstance(weight, bool):
        return ValidationResult.invalid(f"Weight must be a numeric value, got {weight!r}")
    text = str(weight).strip()
    if not WEIGHT_PATTERN.match(text):
        return ValidationResult.invalid(f"Weight must be a numeric value, got {text!r}")
    return ValidationResult.ok(float(text))


def validate_content(content: Any) -> ValidationResult:
    """Validate a free-text content description (may be empty)."""
    text = "" if content is None else str(content).strip()
    if len(text) > MAX_CONTENT_LENGTH:
        return ValidationResult.invalid(
            f"Content description is limited to {MAX_CONTENT_LENGTH} characters, got {len(text)}"
        )
    return ValidationResult.ok(text)


def build_box(box_id: Any, weight: Any, content: Any,
              existing_ids: Optional[Iterable[str]] = None) -> Box:
    """
    Validate all fields and build a Box.

    Raises:
        DuplicateBoxError: If the identifier is already in use
        InvalidArgumentError: If any field is malformed
    """
    if existing_ids is not None:
        existing_ids = set(existing_ids)
        if box_id is not None and str(box_id).strip() in existing_ids:
            raise DuplicateBoxError(f"Box ID {str(box_id).strip()} already exists in storage")

    id_result = validate_box_id(box_id)
    if not id_result.valid:
        raise InvalidArgumentError(id_result.error)
    weight_result = validate_weight(weight)
    if not weight_result.valid:
        raise InvalidArgumentError(weight_result.error)
    content_result = validate_content(content)
    if not content_result.valid:
        raise InvalidArgumentError(content_result.error)

    return Box(id_result.value, weight_result.value, content_result.value)
