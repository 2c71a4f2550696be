"""
EventLog -- append-only, hash-chained asset history.

Responsibility:
    Persists typed event variants and reads them back as typed records.
    Every successful lifecycle transition, transfer step, salvage step and
    inline edit is recorded here in the same unit of work as the state change
    it describes.

Architecture position:
    Kernel > Services.  Called by LifecycleEngine, TransferWorkflow,
    SalvageBatchWorkflow and AssetEditor.  Never commits.

Invariants enforced:
    - Append-only: nothing here updates or deletes an event, and the ORM
      listeners in db/immutability.py reject any attempt to.
    - ``seq`` comes from SequenceService (locked counter row).
    - ``hash = H(seq | subject | event_type | payload_hash | prev_hash)``;
      ``validate_chain`` recomputes every link and every payload hash.

Failure modes:
    - AuditChainBrokenError from validate_chain on any mismatch.
    - UnknownEventTypeError when decoding a tag with no registered variant.
"""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from asset_kernel.domain.clock import Clock, SystemClock
from asset_kernel.domain.dtos import AssetEventRecord
from asset_kernel.domain.events import AssetEventBody, decode_event
from asset_kernel.exceptions import AuditChainBrokenError
from asset_kernel.logging_config import get_logger
from asset_kernel.models.asset_event import AssetEvent
from asset_kernel.services.sequence_service import SequenceService
from asset_kernel.utils.hashing import hash_event, hash_payload

logger = get_logger("services.event_log")


class EventLog:
    """Append and read asset events."""

    def __init__(self, session: Session, clock: Clock | None = None):
        self._session = session
        self._clock = clock or SystemClock()
        self._sequence = SequenceService(session)

    def _last_hash(self) -> str | None:
        return self._session.execute(
            select(AssetEvent.hash).order_by(AssetEvent.seq.desc()).limit(1)
        ).scalar_one_or_none()

    def append(
        self,
        body: AssetEventBody,
        actor: str,
        *,
        asset_tag: str | None = None,
        batch_id: UUID | None = None,
    ) -> AssetEventRecord:
        """
        Append one event.

        Asset events carry ``asset_tag``; batch-level events carry only
        ``batch_id``.  Passing both links an asset event to a batch as well.

        Raises:
            ValueError: If neither subject is supplied.
        """
        if asset_tag is None and batch_id is None:
            raise ValueError("An event needs an asset tag or a batch id")

        seq = self._sequence.next_value(SequenceService.ASSET_EVENT)
        prev_hash = self._last_hash()
        payload = body.to_payload()
        payload_hash = hash_payload(payload)

        event = AssetEvent(
            seq=seq,
            asset_tag=asset_tag,
            salvage_batch_id=batch_id,
            event_type=body.event_type,
            payload=payload,
            created_at=self._clock.now(),
            created_by=actor,
            payload_hash=payload_hash,
            prev_hash=prev_hash,
        )
        event.hash = hash_event(seq, event.subject, body.event_type, payload_hash, prev_hash)

        self._session.add(event)
        self._session.flush()

        logger.info(
            "asset_event_appended",
            extra={
                "seq": seq,
                "event_type": body.event_type,
                "subject": event.subject,
            },
        )
        return self._to_record(event, body)

    def _to_record(self, event: AssetEvent, body: AssetEventBody | None = None) -> AssetEventRecord:
        return AssetEventRecord(
            id=event.id,
            seq=event.seq,
            asset_tag=event.asset_tag,
            salvage_batch_id=event.salvage_batch_id,
            event_type=event.event_type,
            event=body or decode_event(event.event_type, event.payload),
            created_at=event.created_at,
            created_by=event.created_by,
            hash=event.hash,
        )

    def history(self, asset_tag: str) -> tuple[AssetEventRecord, ...]:
        """All events for an asset, oldest first."""
        events = self._session.execute(
            select(AssetEvent)
            .where(AssetEvent.asset_tag == asset_tag)
            .order_by(AssetEvent.seq)
        ).scalars().all()
        return tuple(self._to_record(e) for e in events)

    def batch_history(self, batch_id: UUID) -> tuple[AssetEventRecord, ...]:
        """Events recorded against a salvage batch, oldest first."""
        events = self._session.execute(
            select(AssetEvent)
            .where(AssetEvent.salvage_batch_id == batch_id)
            .order_by(AssetEvent.seq)
        ).scalars().all()
        return tuple(self._to_record(e) for e in events)

    def count(self) -> int:
        return self._session.execute(select(func.count(AssetEvent.id))).scalar_one()

    def validate_chain(self) -> bool:
        """
        Recompute the whole chain.

        Returns:
            True if every payload hash, event hash and back-link matches.

        Raises:
            AuditChainBrokenError: At the first event that does not match.
        """
        events = self._session.execute(
            select(AssetEvent).order_by(AssetEvent.seq)
        ).scalars().all()

        prev_hash: str | None = None
        for event in events:
            if event.prev_hash != prev_hash:
                logger.critical("event_chain_broken", extra={"seq": event.seq})
                raise AuditChainBrokenError(str(event.id), str(prev_hash), str(event.prev_hash))

            payload_hash = hash_payload(event.payload)
            if payload_hash != event.payload_hash:
                logger.critical("event_chain_broken", extra={"seq": event.seq})
                raise AuditChainBrokenError(str(event.id), payload_hash, event.payload_hash)

            expected = hash_event(
                event.seq, event.subject, event.event_type, event.payload_hash, event.prev_hash
            )
            if expected != event.hash:
                logger.critical("event_chain_broken", extra={"seq": event.seq})
                raise AuditChainBrokenError(str(event.id), expected, event.hash)

            prev_hash = event.hash

        return True
