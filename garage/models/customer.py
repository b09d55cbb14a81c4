"""Customer and vehicle models.

Vehicles are kept in their own table with an explicit ``position`` giving the
order in which they were registered to the customer.
"""

from __future__ import annotations

from sqlalchemy import String, Boolean, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from garage.models.base import Base, ULIDMixin
from garage.models.types import EncryptedString


class Customer(Base, ULIDMixin):
    __tablename__ = "customers"

    branch_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("branches.id"), nullable=True)
    name: Mapped[str] = mapped_column(String(200), index=True)
    phone: Mapped[str] = mapped_column(EncryptedString(500), default="")
    email: Mapped[str] = mapped_column(EncryptedString(500), default="")
    address: Mapped[str] = mapped_column(EncryptedString(1000), default="")
    notes: Mapped[str] = mapped_column(String(1000), default="")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)


class Vehicle(Base, ULIDMixin):
    __tablename__ = "vehicles"
    __table_args__ = (UniqueConstraint("customer_id", "position", name="uq_vehicle_position"),)

    customer_id: Mapped[str] = mapped_column(String(26), ForeignKey("customers.id"), index=True)
    position: Mapped[int] = mapped_column(Integer)
    make: Mapped[str] = mapped_column(String(100))
    model: Mapped[str] = mapped_column(String(100))
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    vin: Mapped[str] = mapped_column(String(17), unique=True, index=True)
    plate: Mapped[str] = mapped_column(String(20), default="")
    color: Mapped[str] = mapped_column(String(50), default="")
    mileage: Mapped[int | None] = mapped_column(Integer, nullable=True)
