"""Canonical device views over heterogeneous Meshtastic device records."""

from meshtrack.devices.normalize import (
    DeviceSchema,
    detect_schema,
    get_device_coordinates,
    get_device_name,
    get_latest_device_timestamp,
    get_node_id,
    is_device_active,
    is_device_online,
    is_device_recently_active,
    is_mqtt_node,
    normalize_device,
    normalize_devices,
)

__all__ = [
    "DeviceSchema",
    "detect_schema",
    "get_node_id",
    "get_device_name",
    "get_device_coordinates",
    "get_latest_device_timestamp",
    "is_device_online",
    "is_device_active",
    "is_device_recently_active",
    "is_mqtt_node",
    "normalize_device",
    "normalize_devices",
]
