"""Remote data access for the Meshtastic tracking backend."""

from meshtrack.api.client import JsonFetcher, MeshtasticApiClient

__all__ = ["JsonFetcher", "MeshtasticApiClient"]
