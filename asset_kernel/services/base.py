"""
BaseService -- common base for kernel services.

Responsibility:
    Holds the caller's SQLAlchemy ``Session`` and the injected clock, and
    provides ``_run()``: the single wrapper every public workflow operation
    goes through.

Architecture position:
    Kernel > Services -- imperative shell.

Invariants enforced:
    - Atomicity: each public operation runs inside a SAVEPOINT.  A typed
      kernel failure rolls the savepoint back, so neither the asset, the
      transfer, the batch nor the event log shows any partial write.
    - Transaction boundaries: services flush, they do not commit, unless
      constructed with ``auto_commit=True``.  The caller (``session_scope``,
      a request handler, the test harness) owns the outer transaction.
    - Business failures come back as ``OperationResult``; unexpected errors
      (storage unavailable, programming errors) are re-raised after rollback.
"""

from abc import ABC
from typing import Callable, TypeVar
from uuid import uuid4

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from asset_kernel.domain.clock import Clock, SystemClock
from asset_kernel.domain.policy import WorkflowPolicy
from asset_kernel.domain.results import OperationResult
from asset_kernel.exceptions import AssetKernelError, ConcurrentModificationError
from asset_kernel.logging_config import LogContext, get_logger

T = TypeVar("T")


class BaseService(ABC):
    """
    Abstract base class for kernel services.

    Subclasses get ``self._session``, ``self._clock`` and ``self._policy``.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        policy: WorkflowPolicy | None = None,
        auto_commit: bool = False,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._policy = policy or WorkflowPolicy()
        self._auto_commit = auto_commit

    @property
    def session(self) -> Session:
        return self._session

    def _run(
        self,
        operation: str,
        work: Callable[[], T],
        *,
        actor: str | None = None,
        asset_tag: str | None = None,
        transfer_id: str | None = None,
        batch_id: str | None = None,
        **log_fields,
    ) -> OperationResult[T]:
        """
        Execute ``work`` atomically and wrap its outcome.

        Raises:
            Exception: Anything that is not an AssetKernelError, after rollback.
        """
        op_logger = get_logger(f"services.{type(self).__name__}")
        with LogContext.bind(
            correlation_id=str(uuid4()),
            actor=actor,
            asset_tag=asset_tag,
            transfer_id=transfer_id,
            batch_id=batch_id,
        ):
            op_logger.info(f"{operation}_started", extra=log_fields)
            savepoint = self._session.begin_nested()
            try:
                value = work()
                savepoint.commit()
            except StaleDataError as exc:
                savepoint.rollback()
                conflict = ConcurrentModificationError("Asset", asset_tag or "unknown")
                op_logger.warning(
                    f"{operation}_rejected",
                    extra={"error_code": conflict.code, "detail": str(exc)},
                )
                return OperationResult.failure(conflict)
            except AssetKernelError as exc:
                savepoint.rollback()
                op_logger.warning(
                    f"{operation}_rejected",
                    extra={"error_code": exc.code, "reason": str(exc)},
                )
                return OperationResult.failure(exc)
            except Exception:
                savepoint.rollback()
                op_logger.exception(f"{operation}_failed")
                raise

            if self._auto_commit:
                self._session.commit()
            op_logger.info(f"{operation}_completed", extra=log_fields)
            return OperationResult.success(value)
