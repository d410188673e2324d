"""
Request bodies for the HTTP API.

Required keys are checked in the handlers so that missing fields answer
400 like the rest of the error taxonomy.
"""

from typing import Literal

from pydantic import BaseModel


class SensorCreate(BaseModel):
    nombre_sensor: str | None = None
    id_granja: int | None = None
    dev_eui: str | None = None
    app_id: str | None = None
    device_id: str | None = None
    modelo: str | None = None


class SensorUpdate(BaseModel):
    # Selector: id_sensor, dev_eui, or both (links dev_eui to an EUI-less sensor)
    id_sensor: int | None = None
    dev_eui: str | None = None

    modelo: str | None = None
    area: str | None = None
    zona: str | int | None = None
    sala: str | None = None
    modo: Literal["auto", "manual", ""] | None = None  # "" = unchanged
    umbral_ith: float | None = None


class DownlinkRequest(BaseModel):
    dev_eui: str | None = None
    cmd: str | int | float | None = None  # sent as text
