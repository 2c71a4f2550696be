"""
Module: asset_kernel.db.base
Responsibility: Declarative bases for the asset tables.
Architecture position: Kernel > DB.  ALL model files import from here.
    MUST NOT import from models/, services/, selectors/, domain/, or outer
    layers.

Invariants enforced:
    - Every row has a uuid4 primary key ``id``.
    - ``datetime`` annotations map to UTCDateTime, ``Decimal`` to
      Numeric(12, 2) (purchase prices, weights), ``int`` to BigInteger.
    - Constraint names are deterministic so PostgreSQL and SQLite schemas
      line up.
    - TrackedBase rows carry who created and last touched them.  Actors are
      free-form identity strings supplied by the caller; the kernel does no
      authentication.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, MetaData, Numeric, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from asset_kernel.db.types import UTCDateTime, UUIDString, utcnow

NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):

    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(12, 2),
        datetime: UTCDateTime(),
        UUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Adds created/updated stamps.

    Services stamp these from the injected clock so tests stay deterministic;
    the column defaults only cover rows created elsewhere.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    created_by: Mapped[str] = mapped_column(String(255), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
