"""
Operation results.

Public workflow operations never raise for expected business failures.
They return an ``OperationResult`` whose ``status`` tells the caller which
category of failure happened and whose ``error_code`` is the ``code`` of the
typed exception that caused it.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

from asset_kernel.exceptions import (
    AssetKernelError,
    ConcurrencyError,
    IneligibleForOperationError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)

T = TypeVar("T")


class OperationStatus(str, Enum):
    """Outcome category of a workflow operation."""

    SUCCEEDED = "succeeded"
    NOT_FOUND = "not_found"
    INVALID_TRANSITION = "invalid_transition"
    INELIGIBLE = "ineligible"
    VALIDATION_FAILED = "validation_failed"
    CONFLICT = "conflict"
    FAILED = "failed"


_STATUS_BY_CATEGORY: tuple[tuple[type[AssetKernelError], OperationStatus], ...] = (
    (NotFoundError, OperationStatus.NOT_FOUND),
    (InvalidTransitionError, OperationStatus.INVALID_TRANSITION),
    (IneligibleForOperationError, OperationStatus.INELIGIBLE),
    (ValidationError, OperationStatus.VALIDATION_FAILED),
    (ConcurrencyError, OperationStatus.CONFLICT),
)


def status_for(exc: AssetKernelError) -> OperationStatus:
    """Map a kernel exception to its result status."""
    for category, status in _STATUS_BY_CATEGORY:
        if isinstance(exc, category):
            return status
    return OperationStatus.FAILED


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """Result of a workflow operation."""

    status: OperationStatus
    value: T | None = None
    error_code: str | None = None
    message: str | None = None

    @property
    def is_success(self) -> bool:
        return self.status == OperationStatus.SUCCEEDED

    @classmethod
    def success(cls, value: T | None = None, message: str | None = None) -> "OperationResult[T]":
        return cls(status=OperationStatus.SUCCEEDED, value=value, message=message)

    @classmethod
    def failure(cls, exc: AssetKernelError) -> "OperationResult[T]":
        return cls(status=status_for(exc), error_code=exc.code, message=str(exc))
