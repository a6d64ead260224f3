"""meshtrack - client utilities for Meshtastic device tracking front ends."""

from loguru import logger

__version__ = "0.1.0"
__logo__ = "📡"

logger.disable("meshtrack")
