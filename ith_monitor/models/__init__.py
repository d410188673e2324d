# Database models
from ith_monitor.models.measurement import Measurement
from ith_monitor.models.sensor import Sensor

__all__ = ["Measurement", "Sensor"]
