"""Service variations: a priced catalog of the parts a service touches.

Rows sharing a ``code`` are versions of the same variation; only the newest is
active. Work orders keep pointing at the exact version they were built from.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import String, Boolean, Integer, JSON, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from garage.models.base import Base, ULIDMixin
from garage.models.types import Money


class Variation(Base, ULIDMixin):
    __tablename__ = "variations"
    __table_args__ = (UniqueConstraint("code", "version", name="uq_variation_version"),)

    code: Mapped[str] = mapped_column(String(26), index=True)
    version: Mapped[int] = mapped_column(Integer, default=1)
    name: Mapped[str] = mapped_column(String(200))
    description: Mapped[str] = mapped_column(String(1000), default="")
    price: Mapped[Decimal] = mapped_column(Money())
    parts: Mapped[list] = mapped_column(JSON, default=list)  # [{name, price, stages: [str]}]
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
