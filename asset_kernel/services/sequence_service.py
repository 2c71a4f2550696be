"""
SequenceService -- strictly increasing event sequence numbers.

Responsibility:
    Allocates ``AssetEvent.seq`` from a named counter row read with
    ``SELECT ... FOR UPDATE``.  Two writers appending events at the same time
    queue on the counter row rather than both computing max(seq) + 1.

Invariants enforced:
    - Allocation joins the caller's transaction, so a rolled-back operation
      leaves no consumed number behind.
    - Values start at 1 and never repeat.

Failure modes:
    - Two writers creating the same counter for the first time: the loser's
      INSERT fails inside a savepoint, and it locks the winner's row instead.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from asset_kernel.logging_config import get_logger
from asset_kernel.models.sequence_counter import SequenceCounter

logger = get_logger("services.sequence")


class SequenceService:

    ASSET_EVENT = "asset_event"

    def __init__(self, session: Session):
        self._session = session

    def _lock(self, name: str) -> SequenceCounter | None:
        return self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def _create(self, name: str) -> SequenceCounter:
        """Insert a zeroed counter, or lock the one a concurrent writer just made."""
        savepoint = self._session.begin_nested()
        counter = SequenceCounter(name=name, current_value=0)
        try:
            self._session.add(counter)
            self._session.flush()
        except IntegrityError:
            savepoint.rollback()
            logger.info("sequence_counter_created_concurrently", extra={"sequence_name": name})
            existing = self._lock(name)
            if existing is None:
                raise
            return existing
        savepoint.commit()
        logger.info("sequence_counter_created", extra={"sequence_name": name})
        return counter

    def next_value(self, name: str) -> int:
        """Allocate the next value; the counter stays locked until the caller's transaction ends."""
        counter = self._lock(name) or self._create(name)
        counter.current_value += 1
        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": name, "value": counter.current_value},
        )
        return counter.current_value

    def current_value(self, name: str) -> int:
        """Last allocated value, 0 before the first allocation."""
        value = self._session.execute(
            select(SequenceCounter.current_value).where(SequenceCounter.name == name)
        ).scalar_one_or_none()
        return value or 0
