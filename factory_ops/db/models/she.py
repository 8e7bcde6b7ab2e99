from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlalchemy import Date, DateTime, Numeric, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from factory_ops.db.base import Base, CreatedAtMixin, UUIDPkMixin


class SheIncident(UUIDPkMixin, CreatedAtMixin, Base):
    """Safety incident report."""
    __tablename__ = "she_incidents"

    incident_id: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    incident_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=text("now()"), nullable=False
    )
    severity: Mapped[str] = mapped_column(Text, nullable=False)  # minor/moderate/major/critical
    incident_type: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    lost_time_hours: Mapped[Optional[float]] = mapped_column(Numeric, nullable=True, default=0)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="open")
    closed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class Capa(UUIDPkMixin, CreatedAtMixin, Base):
    """Corrective and preventive action."""
    __tablename__ = "capa"

    title: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="open")
    due_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)


class EnvironmentalMetric(UUIDPkMixin, Base):
    """Daily energy, water and waste figures."""
    __tablename__ = "environmental_metrics"

    metric_date: Mapped[date] = mapped_column(Date, nullable=False)
    energy_kwh: Mapped[Optional[float]] = mapped_column(Numeric, nullable=True)
    water_liters: Mapped[Optional[float]] = mapped_column(Numeric, nullable=True)
    waste_kg: Mapped[Optional[float]] = mapped_column(Numeric, nullable=True)
    recycled_waste_kg: Mapped[Optional[float]] = mapped_column(Numeric, nullable=True)
