"""Device field normalization across current, raw-position and legacy record shapes."""

from __future__ import annotations

import math
import time
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Iterable

from meshtrack.config.constants import DEVICE_ACTIVE_THRESHOLD, DEVICE_RECENTLY_ACTIVE_THRESHOLD

COORDINATE_SCALE = 1e7
UNKNOWN_NODE_ID = "unknown"

Coordinates = tuple[Any, Any, Any]

NODE_ID_KEYS = ("device_id", "hex_id", "user.data.id")
DEVICE_NAME_KEYS = (
    "short_name",
    "long_name",
    "hex_id",
    "device_id",
    "user.data.shortName",
    "user.data.longName",
    "user.data.id",
)
# last_updated is epoch millis, everything else is epoch seconds.
TIMESTAMP_KEYS = (
    ("rawData.time", 1),
    ("last_updated", 1000),
    ("position_time", 1),
    ("user.serverTime", 1),
    ("position.serverTime", 1),
    ("deviceMetrics.serverTime", 1),
    ("environmentMetrics.serverTime", 1),
)


class DeviceSchema(str, Enum):
    """Record shapes a device payload may arrive in."""

    CURRENT = "current"
    RAW_POSITION = "raw_position"
    LEGACY = "legacy"
    UNKNOWN = "unknown"


def detect_schema(device: Any) -> DeviceSchema:
    """Tag a record with the first schema whose marker fields are present."""
    data = _as_record(device)
    if any(key in data for key in ("device_id", "hex_id", "latitude", "longitude", "last_updated")):
        return DeviceSchema.CURRENT
    if isinstance(data.get("rawData"), dict):
        return DeviceSchema.RAW_POSITION
    if any(isinstance(data.get(key), dict) for key in ("user", "position")):
        return DeviceSchema.LEGACY
    return DeviceSchema.UNKNOWN


def get_node_id(device: Any) -> str:
    """
    Return the node id, synthesizing one from coordinates when no id field is set.

    Synthesized ids round coordinates to 4 decimals with exact ties going away
    from zero, so 1.03125 becomes "1.0313".
    """
    data = _as_record(device)
    node_id = _first_truthy(data, NODE_ID_KEYS)
    if node_id:
        return str(node_id)

    if data.get("latitude") and data.get("longitude"):
        lat_text = _to_fixed(_to_float(data.get("latitude")), 4)
        lon_text = _to_fixed(_to_float(data.get("longitude")), 4)
        if lat_text and lon_text:
            return f"node_{lat_text}_{lon_text}"

    return UNKNOWN_NODE_ID


def get_device_name(device: Any) -> Any | None:
    """Return the best display name, or None when the record carries none."""
    data = _as_record(device)
    if data.get("longName") or data.get("shortName"):
        return data.get("longName") or data.get("shortName")
    return _first_truthy(data, DEVICE_NAME_KEYS)


def get_device_coordinates(device: Any) -> Coordinates | None:
    """
    Return `(lat, lon, alt)` from the first schema that carries a position.

    A latitude or longitude of exactly 0 counts as missing in every branch.
    """
    data = _as_record(device)

    lat = data.get("latitude")
    lon = data.get("longitude")
    if lat and lon:
        return (lat, lon, 0)

    raw = data.get("rawData")
    if isinstance(raw, dict) and raw.get("latitude_i") and raw.get("longitude_i"):
        raw_lat = _descale(raw["latitude_i"])
        raw_lon = _descale(raw["longitude_i"])
        if raw_lat is not None and raw_lon is not None:
            return (raw_lat, raw_lon, raw.get("altitude") or 0)

    lat_i = _deep_get(data, "position.data.latitudeI")
    lon_i = _deep_get(data, "position.data.longitudeI")
    if not lat_i or not lon_i:
        return None
    legacy_lat = _descale(lat_i)
    legacy_lon = _descale(lon_i)
    if legacy_lat is None or legacy_lon is None:
        return None
    altitude = _deep_get(data, "position.data.altitude")
    return (legacy_lat, legacy_lon, altitude or 0)


def get_latest_device_timestamp(device: Any) -> float | None:
    """Return the freshest report time in epoch seconds across all schemas."""
    data = _as_record(device)
    timestamps: list[float] = []
    for key, divisor in TIMESTAMP_KEYS:
        value = _deep_get(data, key)
        if not value:
            continue
        parsed = _to_float(value)
        if parsed is None:
            continue
        timestamps.append(parsed / divisor)
    return max(timestamps) if timestamps else None


def is_device_online(device: Any, *, now: float | None = None, threshold: float | None = None) -> bool:
    return _seen_within(device, DEVICE_ACTIVE_THRESHOLD if threshold is None else threshold, now)


def is_device_active(device: Any, *, now: float | None = None, threshold: float | None = None) -> bool:
    # Same rule as is_device_online; both names are kept for callers.
    return _seen_within(device, DEVICE_ACTIVE_THRESHOLD if threshold is None else threshold, now)


def is_device_recently_active(
    device: Any,
    *,
    now: float | None = None,
    threshold: float | None = None,
) -> bool:
    return _seen_within(device, DEVICE_RECENTLY_ACTIVE_THRESHOLD if threshold is None else threshold, now)


def is_mqtt_node(device: Any) -> bool:
    """
    Guess whether a node reached the backend through an MQTT bridge.

    Current records name the gateway that heard them; a node that is its own
    gateway is MQTT-connected. Legacy records report SNR and RSSI as exactly 0
    for packets that never crossed the radio.
    """
    data = _as_record(device)
    gateway = data.get("gateway")
    hex_id = data.get("hex_id")
    if gateway and hex_id:
        return gateway == hex_id

    return _is_exact_zero(_deep_get(data, "user.rxSnr")) and _is_exact_zero(_deep_get(data, "user.rxRssi"))


def normalize_device(
    device: Any,
    *,
    now: float | None = None,
    active_threshold: float | None = None,
    recently_active_threshold: float | None = None,
) -> dict[str, Any]:
    """Project a raw record of any known shape onto the canonical device fields."""
    current = _now_seconds() if now is None else now
    return {
        "node_id": get_node_id(device),
        "device_name": get_device_name(device),
        "coordinates": get_device_coordinates(device),
        "latest_timestamp": get_latest_device_timestamp(device),
        "is_online": is_device_online(device, now=current, threshold=active_threshold),
        "is_active": is_device_active(device, now=current, threshold=active_threshold),
        "is_recently_active": is_device_recently_active(
            device,
            now=current,
            threshold=recently_active_threshold,
        ),
        "is_mqtt_node": is_mqtt_node(device),
        "schema": detect_schema(device).value,
    }


def normalize_devices(
    payload: Any,
    *,
    now: float | None = None,
    active_threshold: float | None = None,
    recently_active_threshold: float | None = None,
) -> list[dict[str, Any]]:
    """Normalize a `/devices` response given as a mapping of records or a list of records."""
    records: Iterable[Any]
    if isinstance(payload, dict):
        records = payload.values()
    elif isinstance(payload, list):
        records = payload
    else:
        return []
    current = _now_seconds() if now is None else now
    return [
        normalize_device(
            item,
            now=current,
            active_threshold=active_threshold,
            recently_active_threshold=recently_active_threshold,
        )
        for item in records
        if isinstance(item, dict)
    ]


def _seen_within(device: Any, threshold: float, now: float | None) -> bool:
    latest = get_latest_device_timestamp(device)
    if not latest:
        return False
    current = _now_seconds() if now is None else now
    return (current - latest) < threshold


def _first_truthy(data: dict[str, Any], keys: Iterable[str]) -> Any | None:
    for key in keys:
        value = _deep_get(data, key)
        if value:
            return value
    return None


def _deep_get(data: dict[str, Any], dotted_key: str) -> Any:
    if dotted_key in data:
        return data.get(dotted_key)
    if "." not in dotted_key:
        return None
    cur: Any = data
    for part in dotted_key.split("."):
        if not isinstance(cur, dict):
            return None
        cur = cur.get(part)
    return cur


def _as_record(device: Any) -> dict[str, Any]:
    return device if isinstance(device, dict) else {}


def _is_exact_zero(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value == 0


def _descale(value: Any) -> float | None:
    parsed = _to_float(value)
    if parsed is None:
        return None
    return parsed / COORDINATE_SCALE


def _to_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_fixed(value: float | None, digits: int) -> str:
    if value is None or not math.isfinite(value):
        return ""
    try:
        quantized = Decimal(value).quantize(Decimal(1).scaleb(-digits), rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return ""
    return f"{quantized:f}"


def _now_seconds() -> float:
    return time.time()
