"""
Sensor model - represents a physical LoRaWAN device
"""

from datetime import datetime
from sqlalchemy import String, DateTime, Integer, Float
from sqlalchemy.orm import Mapped, mapped_column

from ith_monitor.core.database import Base


class Sensor(Base):
    """Physical device, identified on the radio side by its dev_eui."""

    __tablename__ = "sensores"

    id_sensor: Mapped[int] = mapped_column(Integer, primary_key=True)
    nombre_sensor: Mapped[str] = mapped_column(String(100))

    # Owning farm (farm records live outside this service)
    id_granja: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)

    # Canonical uppercase hex EUI, NULL for legacy/manual records
    dev_eui: Mapped[str | None] = mapped_column(String(32), unique=True, index=True, nullable=True)

    # Metadata (mutable through the update path)
    modelo: Mapped[str | None] = mapped_column(String(100), nullable=True)
    area: Mapped[str | None] = mapped_column(String(100), nullable=True)
    zona: Mapped[str | None] = mapped_column(String(100), nullable=True)
    sala: Mapped[str | None] = mapped_column(String(100), nullable=True)
    modo: Mapped[str | None] = mapped_column(String(10), nullable=True)  # "auto" | "manual"
    umbral_ith: Mapped[float | None] = mapped_column(Float, nullable=True)

    # The Things Network addressing pair
    app_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    device_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=datetime.utcnow
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<Sensor {self.id_sensor} {self.dev_eui or 'no-eui'} ({self.nombre_sensor})>"
