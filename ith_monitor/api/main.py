"""
ITH Monitor - API Server

Provides endpoints for:
- TTN uplink webhook (temperature, humidity, ITH)
- Latest measurement queries
- Sensor registration and metadata updates
- Downlink command relay to devices
"""

import json
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ith_monitor import __version__
from ith_monitor.api.schemas import DownlinkRequest, SensorCreate, SensorUpdate
from ith_monitor.core.config import settings
from ith_monitor.core.database import engine, get_db
from ith_monitor.core.errors import (
    InvalidPayloadError,
    IthMonitorError,
    MissingFieldsError,
    NoDataError,
    SensorNotFoundError,
)
from ith_monitor.services.downlink import DownlinkRelay
from ith_monitor.services.ingestion import ingest_uplink, latest_measurement
from ith_monitor.services.registry import (
    SensorPatch,
    build_selector,
    create_sensor,
    latest_dev_eui,
    update_metadata,
)

logger = logging.getLogger(__name__)


def get_downlink_relay() -> DownlinkRelay:
    """Dependency for the TTN downlink relay."""
    return DownlinkRelay.from_settings()


def get_require_identity() -> bool:
    """Dependency for the webhook identity policy."""
    return settings.require_device_identity


# ==================== APP ====================

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"🚀 ITH Monitor API v{__version__} starting")
    yield
    await engine.dispose()
    logger.info("⏹️ ITH Monitor API stopped")


app = FastAPI(
    title="ITH Monitor API",
    description="LoRaWAN heat-stress telemetry for livestock farms",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(IthMonitorError)
async def domain_error_handler(request: Request, exc: IthMonitorError):
    if exc.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path}: {exc.code} ({exc.message})")
    else:
        logger.warning(f"⚠️ {request.method} {request.url.path}: {exc.code} ({exc.message})")
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    fields = [".".join(str(part) for part in error["loc"][1:]) for error in exc.errors()]
    logger.warning(f"⚠️ {request.method} {request.url.path}: payload_invalido ({fields})")
    return JSONResponse({"error": InvalidPayloadError.code, "fields": fields}, status_code=400)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"❌ Database error on {request.url.path}: {exc}")
    return JSONResponse({"error": "db_error"}, status_code=500)


# ==================== HEALTH CHECK ====================

@app.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """Liveness probe: round-trips a pooled connection."""
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"❌ DB ping failed: {e}")
        return JSONResponse({"ok": False, "error": "DB ping failed"}, status_code=500)
    return {"ok": True}


# ==================== TTN WEBHOOK ====================

@app.post("/webhook")
async def webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
    require_identity: bool = Depends(get_require_identity),
):
    """Store one uplink reading, registering unknown devices on the fly."""
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidPayloadError("body is not valid JSON") from e

    await ingest_uplink(db, payload, require_identity=require_identity)
    return PlainTextResponse("OK")


# ==================== MEASUREMENTS ====================

@app.get("/mediciones")
async def get_latest_measurement(
    dev_eui: str | None = Query(None),
    id_sensor: int | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Latest measurement, optionally filtered by dev_eui and/or id_sensor."""
    measurement = await latest_measurement(db, dev_eui=dev_eui, id_sensor=id_sensor)
    if measurement is None:
        raise NoDataError("No hay datos disponibles")
    return measurement.to_dict()


# ==================== SENSORS ====================

@app.post("/sensores", status_code=201)
async def register_sensor(body: SensorCreate, db: AsyncSession = Depends(get_db)):
    """Create a sensor; dev_eui is normalized and must be unique."""
    if not body.nombre_sensor or body.id_granja is None:
        raise MissingFieldsError("nombre_sensor and id_granja are required")

    sensor = await create_sensor(
        db,
        nombre_sensor=body.nombre_sensor,
        id_granja=body.id_granja,
        dev_eui=body.dev_eui,
        app_id=body.app_id,
        device_id=body.device_id,
        modelo=body.modelo,
    )
    return {"id_sensor": sensor.id_sensor, "dev_eui": sensor.dev_eui, "mensaje": "Sensor guardado"}


@app.put("/sensores/actualizar")
@app.put("/api/sensores/actualizar")
async def update_sensor(body: SensorUpdate, db: AsyncSession = Depends(get_db)):
    """
    Update sensor metadata by id_sensor or dev_eui.

    Absent fields keep their value; umbral_ith is always written.
    Sending both id_sensor and dev_eui links the EUI to a sensor without one.
    """
    selector = build_selector(body.id_sensor, body.dev_eui)
    patch = SensorPatch(
        modelo=body.modelo,
        area=body.area,
        zona=str(body.zona) if body.zona is not None else None,
        sala=body.sala,
        modo=body.modo,
        umbral_ith=body.umbral_ith,
    )

    affected = await update_metadata(db, selector, patch)
    if not affected:
        raise SensorNotFoundError("selector matched no sensor")
    return {"ok": True, "affected": affected}


@app.get("/dev-eui-ultimo")
@app.get("/api/dev-eui-ultimo")
async def get_latest_dev_eui(db: AsyncSession = Depends(get_db)):
    """dev_eui of the most recently updated sensor."""
    dev_eui = await latest_dev_eui(db)
    if not dev_eui:
        return JSONResponse({"error": "sin_dev_eui"}, status_code=404)
    return {"dev_eui": dev_eui}


# ==================== DOWNLINK ====================

@app.post("/downlink")
@app.post("/api/downlink")
async def send_downlink(
    body: DownlinkRequest,
    db: AsyncSession = Depends(get_db),
    relay: DownlinkRelay = Depends(get_downlink_relay),
):
    """Relay an operator command to a device (single attempt)."""
    if not body.dev_eui or body.cmd is None or body.cmd == "":
        raise MissingFieldsError("dev_eui and cmd are required")

    await relay.send(db, body.dev_eui, str(body.cmd))
    return {"ok": True}
