"""
Tests for the uplink ingestion pipeline.
"""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from conftest import count_rows
from ith_monitor.core.errors import (
    InvalidPayloadError,
    InvalidReadingError,
    MissingIdentifierError,
    StorageError,
)
from ith_monitor.models import Measurement, Sensor
from ith_monitor.services import ingestion
from ith_monitor.services.ingestion import ingest_uplink, latest_measurement, parse_uplink

EUI = "70B3D57ED003ABCD"


class TestParseUplink:
    """Tests for webhook body parsing."""

    def test_extracts_reading_and_eui(self, sample_uplink):
        uplink = parse_uplink(sample_uplink)
        assert uplink.dev_eui == EUI
        assert (uplink.temperatura, uplink.humedad, uplink.ith) == (25.0, 60.0, 70.0)

    def test_eui_is_normalized(self, sample_uplink):
        sample_uplink["end_device_ids"]["dev_eui"] = "70:b3:d5:7e:d0:03:ab:cd"
        assert parse_uplink(sample_uplink).dev_eui == EUI

    def test_falls_back_to_device_id(self, sample_uplink):
        """Test that a TTN 'eui-<hex>' device_id stands in for a missing dev_eui."""
        del sample_uplink["end_device_ids"]["dev_eui"]
        assert parse_uplink(sample_uplink).dev_eui == EUI

    def test_no_identity(self, sample_uplink):
        del sample_uplink["end_device_ids"]
        assert parse_uplink(sample_uplink).dev_eui is None

    @pytest.mark.parametrize("payload", [
        None,
        [],
        {},
        {"uplink_message": {}},
        {"uplink_message": {"decoded_payload": None}},
        {"uplink_message": "raw"},
    ])
    def test_missing_decoded_payload(self, payload):
        with pytest.raises(InvalidPayloadError):
            parse_uplink(payload)


class TestIngestUplink:
    """Tests for ingest_uplink."""

    async def test_unseen_device_creates_sensor_and_measurement(self, session, sample_uplink):
        measurement = await ingest_uplink(session, sample_uplink)

        assert await count_rows(session, Sensor) == 1
        assert await count_rows(session, Measurement) == 1
        assert measurement.id_sensor is not None
        assert measurement.ith == 70.0

    async def test_known_device_reuses_sensor(self, session, sample_uplink, make_sensor):
        sensor = await make_sensor(dev_eui=EUI)

        first = await ingest_uplink(session, sample_uplink)
        second = await ingest_uplink(session, sample_uplink)

        assert first.id_sensor == second.id_sensor == sensor.id_sensor
        assert await count_rows(session, Sensor) == 1
        assert await count_rows(session, Measurement) == 2

    async def test_missing_identity_rejected_when_required(self, session, sample_uplink):
        del sample_uplink["end_device_ids"]

        with pytest.raises(MissingIdentifierError):
            await ingest_uplink(session, sample_uplink, require_identity=True)
        assert await count_rows(session, Measurement) == 0

    async def test_missing_identity_stored_unassociated_when_permissive(self, session, sample_uplink):
        del sample_uplink["end_device_ids"]

        measurement = await ingest_uplink(session, sample_uplink, require_identity=False)

        assert measurement.id_sensor is None
        assert await count_rows(session, Sensor) == 0
        assert await count_rows(session, Measurement) == 1

    async def test_out_of_range_rejected_before_registration(self, session, sample_uplink):
        """Test that invalid readings neither register the device nor store data."""
        sample_uplink["uplink_message"]["decoded_payload"]["temperatura"] = 90

        with pytest.raises(InvalidReadingError):
            await ingest_uplink(session, sample_uplink)
        assert await count_rows(session, Sensor) == 0
        assert await count_rows(session, Measurement) == 0

    async def test_non_numeric_rejected(self, session, sample_uplink):
        sample_uplink["uplink_message"]["decoded_payload"]["humedad"] = "wet"

        with pytest.raises(InvalidReadingError):
            await ingest_uplink(session, sample_uplink)

    async def test_storage_failure_is_transient_error(self, session, sample_uplink):
        failing = AsyncMock(side_effect=OperationalError("INSERT", {}, Exception("db down")))
        with patch.object(ingestion, "resolve_or_create", failing):
            with pytest.raises(StorageError):
                await ingest_uplink(session, sample_uplink)
        assert await count_rows(session, Measurement) == 0


class TestLatestMeasurement:
    """Tests for latest_measurement."""

    async def test_empty(self, session):
        assert await latest_measurement(session) is None

    async def test_filters(self, session, sample_uplink, make_sensor):
        other = await make_sensor(dev_eui="AABBCCDDEEFF0011")
        first = await ingest_uplink(session, sample_uplink)
        sample_uplink["end_device_ids"]["dev_eui"] = other.dev_eui
        sample_uplink["uplink_message"]["decoded_payload"]["ith"] = 75.5
        second = await ingest_uplink(session, sample_uplink)

        assert (await latest_measurement(session)).id == second.id
        assert (await latest_measurement(session, dev_eui=EUI.lower())).id == first.id
        assert (await latest_measurement(session, id_sensor=other.id_sensor)).id == second.id
        assert await latest_measurement(session, dev_eui="FFFF") is None

    async def test_unusable_eui_filter_matches_nothing(self, session, sample_uplink):
        """Test that a dev_eui filter with no hex digits is not dropped."""
        await ingest_uplink(session, sample_uplink)

        assert await latest_measurement(session, dev_eui="zz") is None
        assert await latest_measurement(session, dev_eui="") is not None
