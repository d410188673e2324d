"""
Measurement model - one uplink reading (temperature, humidity, ITH)
"""

from datetime import datetime
from sqlalchemy import Integer, Float, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from ith_monitor.core.database import Base


class Measurement(Base):
    """Sensor reading, append-only."""

    __tablename__ = "mediciones"

    id: Mapped[int] = mapped_column(primary_key=True)

    # NULL only when the deployment accepts readings without device identity
    id_sensor: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("sensores.id_sensor"), nullable=True, index=True
    )

    # Sensor data
    temperatura: Mapped[float] = mapped_column(Float)  # Celsius
    humedad: Mapped[float] = mapped_column(Float)  # %
    ith: Mapped[float] = mapped_column(Float)  # heat-stress index

    # Timestamp
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=datetime.utcnow,
        index=True
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "id_sensor": self.id_sensor,
            "temperatura": self.temperatura,
            "humedad": self.humedad,
            "ith": self.ith,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:
        return f"<Measurement sensor={self.id_sensor} ith={self.ith}>"
