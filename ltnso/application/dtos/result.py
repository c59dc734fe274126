"""ServiceResult: the success/data/error envelope every service returns."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from ltnso.domain.exceptions import LtnsoException

T = TypeVar("T")


@dataclass(frozen=True)
class ServiceResult(Generic[T]):
    """Outcome of a service operation.

    success=True carries data (which may be None for "not found");
    success=False carries the error and no data.
    """

    success: bool
    data: T | None = None
    error: LtnsoException | None = None

    @classmethod
    def ok(cls, data: T | None = None) -> ServiceResult[T]:
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: LtnsoException) -> ServiceResult[Any]:
        return cls(success=False, error=error)

    def unwrap(self) -> T | None:
        """Return data, or raise the carried error when the result failed."""
        if not self.success:
            raise self.error or LtnsoException("Operation failed")
        return self.data
