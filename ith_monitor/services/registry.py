"""
Device Registry - maps dev_eui to sensores.id_sensor

Handles:
- find-or-create of placeholder sensors on first uplink
- explicit sensor creation
- metadata update by id or dev_eui, with dev_eui back-linking
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select, update, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ith_monitor.core.errors import DuplicateIdentityError, MissingIdentifierError, StorageError
from ith_monitor.models.sensor import Sensor
from ith_monitor.services.eui import normalize_eui, placeholder_name

logger = logging.getLogger(__name__)


# ==================== SELECTORS ====================

@dataclass(frozen=True)
class ByID:
    """Select a sensor by internal id, optionally linking a dev_eui to it."""
    id_sensor: int
    link_eui: str | None = None


@dataclass(frozen=True)
class ByEUI:
    """Select a sensor by canonical dev_eui."""
    dev_eui: str


SensorSelector = ByID | ByEUI


def build_selector(id_sensor: int | None, dev_eui: str | None) -> SensorSelector:
    """Turn the two optional request keys into a selector."""
    eui = normalize_eui(dev_eui)
    if id_sensor is not None:
        return ByID(id_sensor, link_eui=eui)
    if eui:
        return ByEUI(eui)
    raise MissingIdentifierError("id_sensor or dev_eui is required")


# ==================== PATCH ====================

@dataclass
class SensorPatch:
    """
    Mutable sensor metadata.

    ``None`` (or an empty string) leaves a column unchanged, except for
    ``umbral_ith`` which is always written as given, None included.
    """
    modelo: str | None = None
    area: str | None = None
    zona: str | None = None
    sala: str | None = None
    modo: str | None = None
    umbral_ith: float | None = None

    def merged_values(self) -> dict:
        """Columns that only change when a value is supplied."""
        values = {
            "modelo": self.modelo,
            "area": self.area,
            "zona": self.zona,
            "sala": self.sala,
            "modo": self.modo,
        }
        return {column: value for column, value in values.items() if value not in (None, "")}

    def verbatim_values(self) -> dict:
        """Columns written on every update call."""
        return {"umbral_ith": self.umbral_ith}


# ==================== READ PATH ====================

async def find_sensor_id(session: AsyncSession, dev_eui: str) -> int | None:
    result = await session.execute(
        select(Sensor.id_sensor).where(Sensor.dev_eui == dev_eui)
    )
    return result.scalar_one_or_none()


async def find_sensor_by_eui(session: AsyncSession, dev_eui: str) -> Sensor | None:
    """Get sensor by dev_eui (normalized before lookup)."""
    eui = normalize_eui(dev_eui)
    if not eui:
        return None
    result = await session.execute(select(Sensor).where(Sensor.dev_eui == eui))
    return result.scalar_one_or_none()


async def latest_dev_eui(session: AsyncSession) -> str | None:
    """dev_eui of the most recently updated sensor that has one."""
    result = await session.execute(
        select(Sensor.dev_eui)
        .where(Sensor.dev_eui.is_not(None), Sensor.dev_eui != "")
        .order_by(
            func.coalesce(Sensor.updated_at, Sensor.created_at).desc(),
            Sensor.id_sensor.desc(),
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


# ==================== WRITE PATH ====================

async def resolve_or_create(session: AsyncSession, dev_eui: str) -> int:
    """
    Get the id of the sensor owning ``dev_eui``, registering a placeholder
    sensor on first sight.

    Two uplinks racing on the same unseen EUI are settled by the unique
    constraint: the loser gets an IntegrityError and reads the winner's row.
    """
    sensor_id = await find_sensor_id(session, dev_eui)
    if sensor_id is not None:
        return sensor_id

    sensor = Sensor(nombre_sensor=placeholder_name(dev_eui), dev_eui=dev_eui)
    session.add(sensor)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        logger.info(f"🔁 Sensor {dev_eui} registered concurrently, reusing it")
        sensor_id = await find_sensor_id(session, dev_eui)
        if sensor_id is None:
            raise StorageError(f"sensor {dev_eui} vanished after duplicate insert")
        return sensor_id

    logger.info(f"🆕 Created placeholder sensor {sensor.id_sensor} for {dev_eui}")
    return sensor.id_sensor


async def create_sensor(
    session: AsyncSession,
    nombre_sensor: str,
    id_granja: int | None,
    dev_eui: str | None = None,
    app_id: str | None = None,
    device_id: str | None = None,
    modelo: str | None = None,
) -> Sensor:
    """Register a sensor explicitly (operator-provided name)."""
    eui = normalize_eui(dev_eui)
    sensor = Sensor(
        nombre_sensor=nombre_sensor,
        id_granja=id_granja,
        dev_eui=eui,
        app_id=app_id or None,
        device_id=device_id or None,
        modelo=modelo or None,
    )
    session.add(sensor)
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise DuplicateIdentityError(f"dev_eui {eui} already registered") from e
    except SQLAlchemyError as e:
        await session.rollback()
        raise StorageError(str(e)) from e

    logger.info(f"✅ Sensor {sensor.id_sensor} created ({sensor.nombre_sensor})")
    return sensor


async def update_metadata(
    session: AsyncSession, selector: SensorSelector, patch: SensorPatch
) -> int:
    """
    Apply ``patch`` to the selected sensor in one transaction.

    With ``ByID(link_eui=...)`` the EUI is attached only if the sensor has
    none yet. Returns the number of sensors updated (0 = no match).
    """
    try:
        if isinstance(selector, ByEUI):
            sensor_id = await find_sensor_id(session, selector.dev_eui)
            if sensor_id is None:
                await session.rollback()
                return 0
        else:
            sensor_id = selector.id_sensor

        values = {
            **patch.merged_values(),
            **patch.verbatim_values(),
            "updated_at": datetime.utcnow(),
        }
        result = await session.execute(
            update(Sensor)
            .where(Sensor.id_sensor == sensor_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        affected = result.rowcount

        if affected and isinstance(selector, ByID) and selector.link_eui:
            await session.execute(
                update(Sensor)
                .where(
                    Sensor.id_sensor == sensor_id,
                    or_(Sensor.dev_eui.is_(None), Sensor.dev_eui == ""),
                )
                .values(dev_eui=selector.link_eui)
                .execution_options(synchronize_session=False)
            )

        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise DuplicateIdentityError("dev_eui already attached to another sensor") from e
    except SQLAlchemyError as e:
        await session.rollback()
        logger.exception(f"❌ Database error updating sensor: {e}")
        raise StorageError(str(e)) from e

    if affected:
        logger.info(f"📝 Sensor {sensor_id} updated: {sorted(values)}")
    return affected
