"""
Device EUI normalization.

EUIs arrive from the network server and from operators in many shapes
("70:b3:d5:7e:d0:03:ab:cd", "70-B3-D5...", " 70b3d57ed003abcd "). They are
stored and compared in one canonical form: uppercase hex, no separators.
Length and checksum are not validated.
"""

import re

_NON_HEX = re.compile(r"[^0-9A-F]")


def normalize_eui(value) -> str | None:
    """Return the canonical EUI for ``value``, or None if nothing is left."""
    if value is None:
        return None
    eui = _NON_HEX.sub("", str(value).upper())
    return eui or None


def placeholder_name(eui: str) -> str:
    """Display name given to sensors auto-registered from an uplink."""
    return f"Sensor {eui}"
