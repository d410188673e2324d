"""
Ingestion Pipeline - TTN uplink webhook to mediciones rows

Payload shape (The Things Stack v3 uplink):
    {
        "end_device_ids": {"dev_eui": "70B3D57ED003ABCD", "device_id": "..."},
        "uplink_message": {"decoded_payload": {"temperatura": 25.1, "humedad": 61, "ith": 72.4}}
    }
"""

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ith_monitor.core.errors import (
    InvalidPayloadError,
    InvalidReadingError,
    MissingIdentifierError,
    StorageError,
)
from ith_monitor.models.measurement import Measurement
from ith_monitor.models.sensor import Sensor
from ith_monitor.services.eui import normalize_eui
from ith_monitor.services.registry import resolve_or_create
from ith_monitor.services.validation import is_valid_reading

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Uplink:
    """Decoded fields extracted from one webhook call."""
    dev_eui: str | None
    temperatura: object
    humedad: object
    ith: object


def _eui_from_device_id(device_id):
    # TTN's default end device id is "eui-<dev_eui>"
    if isinstance(device_id, str) and device_id.lower().startswith("eui-"):
        return device_id[4:]
    return None


def parse_uplink(payload) -> Uplink:
    """Extract the reading and the device EUI from a webhook body."""
    if not isinstance(payload, dict):
        raise InvalidPayloadError("body is not a JSON object")

    uplink = payload.get("uplink_message")
    decoded = uplink.get("decoded_payload") if isinstance(uplink, dict) else None
    if not isinstance(decoded, dict):
        raise InvalidPayloadError("uplink_message.decoded_payload missing")

    ids = payload.get("end_device_ids")
    raw_eui = None
    if isinstance(ids, dict):
        raw_eui = ids.get("dev_eui") or _eui_from_device_id(ids.get("device_id"))

    return Uplink(
        dev_eui=normalize_eui(raw_eui),
        temperatura=decoded.get("temperatura"),
        humedad=decoded.get("humedad"),
        ith=decoded.get("ith"),
    )


async def ingest_uplink(
    session: AsyncSession, payload, require_identity: bool = True
) -> Measurement:
    """
    Run one webhook body through the pipeline and store the measurement.

    Payload and validation failures raise 4xx errors and touch nothing.
    Storage failures raise StorageError (the network server retries non-2xx).
    """
    uplink = parse_uplink(payload)

    if not uplink.dev_eui and require_identity:
        raise MissingIdentifierError("end_device_ids.dev_eui missing")

    if not is_valid_reading(uplink.temperatura, uplink.humedad, uplink.ith):
        raise InvalidReadingError(
            f"temperatura={uplink.temperatura!r} humedad={uplink.humedad!r} ith={uplink.ith!r}"
        )

    try:
        sensor_id = None
        if uplink.dev_eui:
            sensor_id = await resolve_or_create(session, uplink.dev_eui)

        measurement = Measurement(
            id_sensor=sensor_id,
            temperatura=float(uplink.temperatura),
            humedad=float(uplink.humedad),
            ith=float(uplink.ith),
        )
        session.add(measurement)
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.exception(f"❌ Error inserting measurement for {uplink.dev_eui}")
        raise StorageError(str(e)) from e

    logger.info(
        f"✅ Data received: temperatura={measurement.temperatura} humedad={measurement.humedad} "
        f"ith={measurement.ith} dev_eui={uplink.dev_eui}"
    )
    return measurement


async def latest_measurement(
    session: AsyncSession, dev_eui: str | None = None, id_sensor: int | None = None
) -> Measurement | None:
    """Most recent measurement for a sensor, or system-wide without filters."""
    query = select(Measurement)

    eui = normalize_eui(dev_eui)
    if dev_eui not in (None, "") and not eui:
        return None
    if eui:
        query = query.join(Sensor, Sensor.id_sensor == Measurement.id_sensor).where(
            Sensor.dev_eui == eui
        )
    if id_sensor is not None:
        query = query.where(Measurement.id_sensor == id_sensor)

    result = await session.execute(query.order_by(Measurement.id.desc()).limit(1))
    return result.scalar_one_or_none()
