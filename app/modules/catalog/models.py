"""Catalog ORM models: businesses and the services they sell."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, BaseModelMixin

if TYPE_CHECKING:
    from app.modules.identity.models import User


class Business(BaseModelMixin, Base):
    """Business listing owned by a business user."""

    __tablename__ = "businesses"

    owner_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    opening_time: Mapped[str] = mapped_column(String(5), default="09:00", nullable=False)
    closing_time: Mapped[str] = mapped_column(String(5), default="18:00", nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="INR", nullable=False)

    owner: Mapped["User"] = relationship()
    services: Mapped[list["Service"]] = relationship(back_populates="business")


class Service(BaseModelMixin, Base):
    """Bookable service with a fixed price and duration."""

    __tablename__ = "services"

    business_id: Mapped[UUID] = mapped_column(
        ForeignKey("businesses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, default=60, nullable=False)

    business: Mapped[Business] = relationship(back_populates="services")
