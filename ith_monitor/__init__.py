"""ITH Monitor - LoRaWAN heat-stress telemetry backend."""

__version__ = "1.0.0"
