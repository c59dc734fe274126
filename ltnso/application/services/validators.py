"""Input validators used by BaseService before any store I/O.

A validator returns a ValidationException describing the first problem, or
None when the input is acceptable. Entity-specific business rules are out of
scope; these cover the structural checks every entity shares.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Protocol

from pydantic import EmailStr, TypeAdapter, ValidationError

from ltnso.domain.exceptions import ValidationException

_EMAIL_ADAPTER: TypeAdapter[str] = TypeAdapter(EmailStr)


class EntityValidator(Protocol):
    """Protocol for create/update input validation."""

    def validate_create(self, data: Mapping[str, Any]) -> ValidationException | None:
        """Return the validation error for create input, or None."""

    def validate_update(self, data: Mapping[str, Any]) -> ValidationException | None:
        """Return the validation error for an update patch, or None."""


class AcceptAllValidator:
    """Validator that accepts any input."""

    def validate_create(self, data: Mapping[str, Any]) -> ValidationException | None:
        return None

    def validate_update(self, data: Mapping[str, Any]) -> ValidationException | None:
        return None


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class RequiredFieldsValidator:
    """Required, immutable and e-mail fields.

    Create: every required field present and non-blank.
    Update: patch non-empty, no immutable field, required fields (when
    present) non-blank.
    Both: e-mail fields, when present and non-blank, look like addresses.
    """

    def __init__(
        self,
        required: Iterable[str] = (),
        *,
        email_fields: Iterable[str] = (),
        immutable: Iterable[str] = ("id",),
    ) -> None:
        self.required = tuple(required)
        self.email_fields = tuple(email_fields)
        self.immutable = tuple(immutable)

    def _check_emails(self, data: Mapping[str, Any]) -> ValidationException | None:
        for field in self.email_fields:
            value = data.get(field)
            if _is_blank(value):
                continue
            try:
                _EMAIL_ADAPTER.validate_python(value)
            except ValidationError:
                return ValidationException(f"{field} must be a valid email", field, value)
        return None

    def validate_create(self, data: Mapping[str, Any]) -> ValidationException | None:
        for field in self.required:
            value = data.get(field)
            if _is_blank(value):
                return ValidationException(f"{field} is required", field, value)
        return self._check_emails(data)

    def validate_update(self, data: Mapping[str, Any]) -> ValidationException | None:
        if not data:
            return ValidationException("No fields to update")
        for field in self.immutable:
            if field in data:
                return ValidationException(f"{field} cannot be updated", field, data[field])
        for field in self.required:
            if field in data and _is_blank(data[field]):
                return ValidationException(f"{field} cannot be empty", field, data[field])
        return self._check_emails(data)
