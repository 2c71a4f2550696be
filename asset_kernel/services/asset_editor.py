"""
AssetEditor -- inline single-field edits through an explicit field map.

Only fields listed in ``EDITABLE_FIELDS`` can be changed, Salvaged assets
cannot be edited at all, and every effective change is recorded as a
``FieldUpdated`` event carrying the old and new value.
"""

from sqlalchemy.orm import Session

from asset_kernel.domain.clock import Clock
from asset_kernel.domain.dtos import AssetInfo
from asset_kernel.domain.events import FieldUpdated
from asset_kernel.domain.field_map import normalize_field_value
from asset_kernel.domain.policy import WorkflowPolicy
from asset_kernel.domain.results import OperationResult
from asset_kernel.exceptions import AssetNotEditableError
from asset_kernel.logging_config import get_logger
from asset_kernel.services.asset_store import AssetStore
from asset_kernel.services.base import BaseService
from asset_kernel.services.event_log import EventLog

logger = get_logger("services.asset_editor")


class AssetEditor(BaseService):
    """Validated single-field updates."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        policy: WorkflowPolicy | None = None,
        auto_commit: bool = False,
    ):
        super().__init__(session, clock, policy, auto_commit)
        self._store = AssetStore(session)
        self._events = EventLog(session, self._clock)

    def update_field(
        self,
        asset_tag: str,
        field_name: str,
        value: str | None,
        *,
        actor: str,
    ) -> OperationResult[AssetInfo]:
        """
        Set one editable field.

        A blank value clears the field (unless it is required).  Writing the
        value the field already holds succeeds without recording an event.
        """

        def work() -> AssetInfo:
            asset = self._store.get_for_update(asset_tag)
            if not asset.is_editable:
                raise AssetNotEditableError(asset_tag)

            spec, new_value = normalize_field_value(field_name, value, self._policy)
            old_value = getattr(asset, spec.attribute)
            if old_value == new_value:
                logger.debug("field_unchanged", extra={"field_name": field_name})
                return AssetInfo.from_model(asset)

            setattr(asset, spec.attribute, new_value)
            asset.updated_at = self._clock.now()
            asset.updated_by = actor
            self._store.save(asset)

            self._events.append(
                FieldUpdated(field_name=field_name, old_value=old_value, new_value=new_value),
                actor,
                asset_tag=asset_tag,
            )
            return AssetInfo.from_model(asset)

        return self._run(
            "update_field",
            work,
            actor=actor,
            asset_tag=asset_tag,
            field_name=field_name,
        )
