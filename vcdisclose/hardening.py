"""
Input Validation

Validation for values crossing the library boundary: raw credential
attributes, field elements supplied as public inputs, and digests.

Security Model:
    - All inputs are untrusted until validated
    - Digest comparisons are constant-time
    - Attribute encoding is total, so oversize attributes are accepted
      with a warning rather than rejected (they reduce mod r and may collide)

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import hmac
import re
from dataclasses import dataclass, field
from typing import Any, List, Sequence

from vcdisclose.field import FIELD_BYTES, FIELD_MODULUS, FieldElement


# =============================================================================
# VALIDATION ERROR TYPES
# =============================================================================

class ValidationError(Exception):
    """Base exception for validation failures."""

    def __init__(self, field: str, message: str, value: Any = None):
        self.field = field
        self.message = message
        self.value = value
        super().__init__(f"{field}: {message}")


class ValidationErrors(Exception):
    """Collection of validation errors."""

    def __init__(self, errors: List[ValidationError]):
        self.errors = errors
        messages = "; ".join(f"{e.field}: {e.message}" for e in errors)
        super().__init__(f"Validation failed: {messages}")


# =============================================================================
# VALIDATION RESULT
# =============================================================================

@dataclass
class ValidationResult:
    """Result of a validation operation."""
    is_valid: bool
    errors: List[ValidationError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    sanitized_value: Any = None

    def raise_if_invalid(self) -> None:
        """Raise ValidationErrors if validation failed."""
        if not self.is_valid:
            raise ValidationErrors(self.errors)

    @classmethod
    def success(cls, sanitized_value: Any = None) -> 'ValidationResult':
        return cls(is_valid=True, sanitized_value=sanitized_value)

    @classmethod
    def failure(cls, errors: List[ValidationError]) -> 'ValidationResult':
        return cls(is_valid=False, errors=errors)


# =============================================================================
# INPUT VALIDATORS
# =============================================================================

class Validators:
    """Collection of input validators."""

    HEX64_PATTERN = re.compile(r'^[a-f0-9]{64}$')

    # Attributes longer than this no longer map injectively into the field.
    MAX_INJECTIVE_BYTES = FIELD_BYTES - 1
    MAX_ATTRIBUTE_BYTES = 4096

    @classmethod
    def validate_attribute(cls, value: Any, field_name: str = "attribute") -> ValidationResult:
        """Validate one raw attribute (bytes or text); sanitized value is bytes."""
        if isinstance(value, str):
            data = value.encode("utf-8")
        elif isinstance(value, (bytes, bytearray)):
            data = bytes(value)
        else:
            return ValidationResult.failure([
                ValidationError(field_name, f"Expected bytes or str, got {type(value).__name__}", value)
            ])

        if len(data) > cls.MAX_ATTRIBUTE_BYTES:
            return ValidationResult.failure([
                ValidationError(field_name, f"Too long (max {cls.MAX_ATTRIBUTE_BYTES} bytes)", value)
            ])

        result = ValidationResult.success(data)
        if len(data) > cls.MAX_INJECTIVE_BYTES:
            result.warnings.append(
                f"{field_name}: {len(data)} bytes exceeds {cls.MAX_INJECTIVE_BYTES}; "
                f"encoding reduces modulo the field order"
            )
        return result

    @classmethod
    def validate_attributes(
        cls,
        values: Sequence[Any],
        expected_count: int,
    ) -> ValidationResult:
        """Validate a full attribute list against the schema's attribute count."""
        errors: List[ValidationError] = []
        warnings: List[str] = []
        sanitized: List[bytes] = []

        if isinstance(values, (str, bytes, bytearray)):
            return ValidationResult.failure([
                ValidationError("attributes", "Expected a sequence of attributes", values)
            ])

        if len(values) != expected_count:
            errors.append(ValidationError(
                "attributes",
                f"Expected {expected_count} attributes, got {len(values)}",
                len(values),
            ))

        for i, value in enumerate(values):
            result = cls.validate_attribute(value, f"attribute[{i}]")
            errors.extend(result.errors)
            warnings.extend(result.warnings)
            sanitized.append(result.sanitized_value)

        if errors:
            return ValidationResult(is_valid=False, errors=errors, warnings=warnings)
        return ValidationResult(is_valid=True, warnings=warnings, sanitized_value=sanitized)

    @classmethod
    def validate_field_element(
        cls,
        value: Any,
        field_name: str = "value",
    ) -> ValidationResult:
        """
        Validate a field element given as FieldElement or int in [0, r).
        Sanitized value is a FieldElement.
        """
        if isinstance(value, FieldElement):
            return ValidationResult.success(value)

        if not isinstance(value, int) or isinstance(value, bool):
            return ValidationResult.failure([
                ValidationError(field_name, f"Expected integer, got {type(value).__name__}", value)
            ])

        if not 0 <= value < FIELD_MODULUS:
            return ValidationResult.failure([
                ValidationError(field_name, "Outside the scalar field range", value)
            ])

        return ValidationResult.success(FieldElement(value))

    @classmethod
    def validate_digest(cls, value: Any, field_name: str = "digest") -> ValidationResult:
        """Validate a lowercase hex SHA-256 digest."""
        if not isinstance(value, str) or not cls.HEX64_PATTERN.match(value):
            return ValidationResult.failure([
                ValidationError(field_name, "Expected 64 lowercase hex characters", value)
            ])
        return ValidationResult.success(value)


# =============================================================================
# CRYPTOGRAPHIC UTILITIES
# =============================================================================

class CryptoUtils:
    """Cryptographic utility functions."""

    @staticmethod
    def secure_compare_str(a: str, b: str) -> bool:
        """Constant-time comparison of strings."""
        return hmac.compare_digest(a.encode(), b.encode())
