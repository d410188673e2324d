"""
Error taxonomy shared by the services and the HTTP layer.

Every error carries the HTTP status it maps to and a stable ``code`` that is
returned to clients as ``{"error": code}``.
"""


class IthMonitorError(Exception):
    """Base class for all domain errors."""

    status_code: int = 500
    code: str = "error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.code)
        self.message = message or self.code

    def to_dict(self) -> dict:
        return {"error": self.code}


# ==================== CLIENT ERRORS (never retried) ====================

class InvalidPayloadError(IthMonitorError):
    status_code = 400
    code = "payload_invalido"


class MissingIdentifierError(IthMonitorError):
    status_code = 400
    code = "dev_eui_requerido"


class MissingFieldsError(IthMonitorError):
    status_code = 400
    code = "faltan_campos"


class InvalidReadingError(IthMonitorError):
    status_code = 422
    code = "lectura_fuera_de_rango"


class SensorNotFoundError(IthMonitorError):
    status_code = 404
    code = "sensor_no_encontrado"


class NoDataError(IthMonitorError):
    status_code = 404
    code = "sin_datos"


# ==================== IDENTITY / CONFIGURATION ====================

class DuplicateIdentityError(IthMonitorError):
    """A dev_eui is already attached to another sensor."""

    status_code = 409
    code = "dev_eui_duplicado"


class MissingAddressingError(IthMonitorError):
    """Sensor has no app_id/device_id on the network server."""

    status_code = 409
    code = "falta_app_o_device_id"


class DownlinkNotConfiguredError(IthMonitorError):
    status_code = 500
    code = "ttn_api_key_no_configurada"


# ==================== TRANSIENT / UPSTREAM ====================

class StorageError(IthMonitorError):
    """Query, pool or transaction failure. The caller may retry."""

    status_code = 500
    code = "db_error"


class UpstreamRelayError(IthMonitorError):
    """Network server answered a downlink with a non-2xx status."""

    status_code = 502
    code = "ttn_error"

    def __init__(self, status: int | None, detail: str):
        super().__init__(f"network server returned {status or 'no response'}")
        self.status = status
        self.detail = detail

    def to_dict(self) -> dict:
        return {"error": self.code, "status": self.status, "detail": self.detail}
