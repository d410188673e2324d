"""
Downlink Relay - forwards operator commands to a device through TTN v3

POST {base}/api/v3/as/applications/{app_id}/devices/{device_id}/down/push
    {"downlinks": [{"f_port": 1, "frm_payload": "<base64>", "priority": "NORMAL"}]}

One attempt per call, no retries.
"""

import base64
import logging

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from ith_monitor.core.config import settings
from ith_monitor.core.errors import (
    DownlinkNotConfiguredError,
    MissingAddressingError,
    MissingFieldsError,
    SensorNotFoundError,
    UpstreamRelayError,
)
from ith_monitor.services.eui import normalize_eui
from ith_monitor.services.registry import find_sensor_by_eui

logger = logging.getLogger(__name__)


def encode_frm_payload(cmd: str) -> str:
    """The node expects ASCII; TTN requires base64 in frm_payload."""
    return base64.b64encode(str(cmd).encode("utf-8")).decode("ascii")


class DownlinkRelay:
    """Sends downlink frames to The Things Network application server."""

    def __init__(
        self,
        api_key: str,
        base_url: str,
        f_port: int = 1,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.f_port = f_port
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls) -> "DownlinkRelay":
        return cls(
            api_key=settings.ttn_api_key,
            base_url=settings.ttn_api_url,
            f_port=settings.downlink_f_port,
            timeout=settings.downlink_timeout,
        )

    def push_url(self, app_id: str, device_id: str) -> str:
        return f"{self.base_url}/api/v3/as/applications/{app_id}/devices/{device_id}/down/push"

    def build_body(self, cmd: str) -> dict:
        return {
            "downlinks": [
                {
                    "f_port": self.f_port,
                    "frm_payload": encode_frm_payload(cmd),
                    "priority": "NORMAL",
                }
            ]
        }

    async def send(self, session: AsyncSession, dev_eui: str, cmd: str) -> None:
        """
        Relay ``cmd`` to the sensor owning ``dev_eui``.

        Raises:
            MissingFieldsError: dev_eui or cmd empty
            SensorNotFoundError: no sensor with that dev_eui
            MissingAddressingError: sensor lacks app_id or device_id
            DownlinkNotConfiguredError: TTN_API_KEY not set
            UpstreamRelayError: TTN answered non-2xx or was unreachable
        """
        eui = normalize_eui(dev_eui)
        if not eui or not cmd:
            raise MissingFieldsError("dev_eui and cmd are required")

        sensor = await find_sensor_by_eui(session, eui)
        if sensor is None:
            raise SensorNotFoundError(f"no sensor with dev_eui {eui}")
        if not sensor.app_id or not sensor.device_id:
            raise MissingAddressingError(f"sensor {sensor.id_sensor} has no app_id/device_id")

        if not self.api_key:
            raise DownlinkNotConfiguredError("TTN_API_KEY is not set")

        url = self.push_url(sensor.app_id, sensor.device_id)
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, json=self.build_body(cmd), headers=headers)
        except httpx.RequestError as e:
            logger.error(f"❌ TTN downlink to {eui} failed: {e}")
            raise UpstreamRelayError(None, str(e)) from e

        if not response.is_success:
            logger.error(f"❌ TTN downlink error {response.status_code}: {response.text}")
            raise UpstreamRelayError(response.status_code, response.text)

        logger.info(f"📤 Downlink sent to {eui} ({sensor.app_id}/{sensor.device_id}): {cmd}")
