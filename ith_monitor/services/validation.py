"""
Plausibility checks for decoded uplink readings.
"""

import math

# Inclusive bounds
TEMPERATURE_RANGE = (-40.0, 85.0)  # Celsius, SHT-class sensor operating range
HUMIDITY_RANGE = (0.0, 100.0)  # %RH
ITH_RANGE = (0.0, 120.0)


def _is_number(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # int too large for a float
        return False


def _in_range(value, bounds: tuple[float, float]) -> bool:
    low, high = bounds
    return low <= value <= high


def is_valid_reading(temperatura, humedad, ith) -> bool:
    """
    Check a (temperature, humidity, ITH) triple.

    The whole triple is rejected if any value is non-numeric or out of range.
    """
    values = (temperatura, humedad, ith)
    if not all(_is_number(v) for v in values):
        return False
    return (
        _in_range(temperatura, TEMPERATURE_RANGE)
        and _in_range(humedad, HUMIDITY_RANGE)
        and _in_range(ith, ITH_RANGE)
    )
