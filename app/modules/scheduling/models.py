"""Scheduling ORM models."""

from __future__ import annotations

import datetime as dt
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, String
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, BaseModelMixin
from app.core.enums import SlotStatusEnum, enum_values


class TherapistAvailability(BaseModelMixin, Base):
    """Therapist working window on one calendar day."""

    __tablename__ = "therapist_availability"
    __table_args__ = (CheckConstraint("end_time > start_time", name="window_order"),)

    therapist_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    # Zero-padded HH:MM strings order lexicographically like times.
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    status: Mapped[SlotStatusEnum] = mapped_column(
        SAEnum(SlotStatusEnum, name="slot_status_enum", native_enum=False, values_callable=enum_values),
        default=SlotStatusEnum.AVAILABLE,
        nullable=False,
        index=True,
    )
