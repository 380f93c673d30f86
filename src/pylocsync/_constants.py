"""Internal constants shared across the library."""

from decimal import Decimal

USER_AGENT = "pylocsync/0.1 (+https://github.com/pylocsync/pylocsync)"

TASK_NAME = "BACKGROUND_LOCATION_TASK"

#: Status code of a delivery record that is currently in transit.
IN_TRANSIT_STATUS = 4

DEFAULT_TABLE = "contract"
DEFAULT_IDENTITY_COLUMN = "delivery_id"
DEFAULT_STATUS_COLUMN = "contract_status_id"

DEFAULT_GEOCODER_URL = "https://nominatim.openstreetmap.org"

# ------------------------------------------------------------------
# Geometry serialisation
# ------------------------------------------------------------------

WGS84_SRID = 4326


def format_coordinate(value: float) -> str:
    """Render a coordinate the way a JavaScript number prints.

    Integral floats drop their fractional part (``121.0`` -> ``"121"``).
    Other values use the shortest round-tripping digits, written out in
    plain decimal (``0.00005``) down to ``1e-6`` and as ``1e-7`` style
    exponents below that.
    """
    number = float(value)
    if number.is_integer():
        return str(int(number))
    text = repr(number)
    if "e" not in text:
        return text
    if abs(number) < 1e-6:
        mantissa, exponent = text.split("e")
        return f"{mantissa}e{int(exponent)}"
    return f"{Decimal(text):f}"


def to_ewkt_point(latitude: float, longitude: float, srid: int = WGS84_SRID) -> str:
    """Serialise a coordinate as an EWKT point, longitude first."""
    return f"SRID={srid};POINT({format_coordinate(longitude)} {format_coordinate(latitude)})"


def coordinate_text(latitude: float, longitude: float) -> str:
    """Fallback location text used when no address could be resolved."""
    return f"{format_coordinate(latitude)},{format_coordinate(longitude)}"
