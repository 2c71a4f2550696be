"""
Module: asset_kernel.selectors.base
Responsibility: Shared plumbing for read-only asset, transfer and batch
    queries.
Architecture position: Kernel > Selectors.  May import from db/, models/ and
    domain/ DTOs.  MUST NOT import from services/.

Invariants enforced:
    - Read-only: selectors never add, delete, flush or commit.
    - Selectors hand back tuples of frozen DTOs, never ORM instances, so a
      caller cannot mutate an asset behind the lifecycle engine's back.
    - The caller owns the session and its transaction.
"""

from abc import ABC
from typing import Any, Callable, TypeVar

from sqlalchemy import Select
from sqlalchemy.orm import Session

D = TypeVar("D")


class BaseSelector(ABC):

    def __init__(self, session: Session):
        self.session = session

    def _one(self, stmt: Select, to_dto: Callable[[Any], D]) -> D | None:
        row = self.session.execute(stmt).scalar_one_or_none()
        return to_dto(row) if row is not None else None

    def _all(self, stmt: Select, to_dto: Callable[[Any], D]) -> tuple[D, ...]:
        return tuple(to_dto(row) for row in self.session.execute(stmt).scalars().all())
