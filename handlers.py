import logging
import math
from typing import Optional

from errors import InvalidBoolean, InvalidNumber, MissingField
from sse import Event, EventBroker
from store import StateStore

logger = logging.getLogger(__name__)

TRUE_LITERALS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
FALSE_LITERALS = frozenset({"0", "f", "F", "FALSE", "false", "False"})
INF_SPELLINGS = frozenset({"inf", "infinity"})


def parse_bool(raw: str) -> bool:
    if raw in TRUE_LITERALS:
        return True
    if raw in FALSE_LITERALS:
        return False
    raise InvalidBoolean()


def parse_float(raw: str, field: str) -> float:
    # float() tolerates padding and digit underscores; a query value should not
    if raw != raw.strip() or "_" in raw:
        raise InvalidNumber(field)
    try:
        value = float(raw)
    except ValueError:
        raise InvalidNumber(field) from None
    # out of float64 range; only a spelled-out inf may parse as inf
    if math.isinf(value) and raw.lstrip("+-").lower() not in INF_SPELLINGS:
        raise InvalidNumber(field)
    return value


def handle_attendance(store: StateStore, broker: Optional[EventBroker],
                      device_id: str, raw_value: str) -> str:
    """
    Validate and record an attendance flag.
    Returns the confirmation text; raises a TelemetryError on bad input.
    """
    if not device_id:
        raise MissingField("id")
    if not raw_value:
        raise MissingField("value")
    value = parse_bool(raw_value)

    store.set_attendance(device_id, value)

    flag = "true" if value else "false"
    logger.info("Device %s -> %s", device_id, flag)
    message = f"Device {device_id} set to {flag}"
    if broker is not None:
        broker.publish(Event(type="update", message=message))
    return message


def handle_location(store: StateStore, broker: Optional[EventBroker],
                    device_id: str, raw_lat: str, raw_lon: str) -> str:
    """
    Validate and record a GPS fix. Coordinates are not range checked.
    """
    if not device_id:
        raise MissingField("id")
    lat = parse_float(raw_lat, "lat")
    lon = parse_float(raw_lon, "lon")

    store.set_location(device_id, lat, lon)

    logger.info("GPS Update: Device %s at %.6f, %.6f", device_id, lat, lon)
    message = f"GPS updated for {device_id}: {lat:.6f}, {lon:.6f}"
    if broker is not None:
        broker.publish(Event(type="gps", message=message))
    return message
