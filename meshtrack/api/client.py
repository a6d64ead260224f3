"""Meshtastic backend client with fail-soft fallbacks."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Awaitable, Callable

import httpx
from loguru import logger

from meshtrack.config import constants

if TYPE_CHECKING:
    from meshtrack.config.schema import Config

JsonFetcher = Callable[[str, float], Awaitable[Any]]


class MeshtasticApiClient:
    """Fetches tracks, metrics and device lists; every failure becomes an empty fallback."""

    def __init__(
        self,
        *,
        base_url_main: str = constants.BASE_URL_MAIN,
        gps_endpoint: str = constants.GPS_ENDPOINT,
        device_metrics_endpoint: str = constants.DEVICE_METRICS_ENDPOINT,
        environment_metrics_endpoint: str = constants.ENVIRONMENT_METRICS_ENDPOINT,
        timeout_seconds: float = constants.REQUEST_TIMEOUT_SECONDS,
        fetcher: JsonFetcher | None = None,
    ) -> None:
        self.base_url_main = str(base_url_main or "").rstrip("/")
        self.gps_endpoint = str(gps_endpoint or "").strip()
        self.device_metrics_endpoint = str(device_metrics_endpoint or "").strip()
        self.environment_metrics_endpoint = str(environment_metrics_endpoint or "").strip()
        self.timeout_seconds = max(0.2, float(timeout_seconds))
        self._fetcher = fetcher or self._http_fetch_json
        self._last_error: str = ""
        self._requests_total = 0
        self._failures_total = 0

    @classmethod
    def from_config(cls, config: Config, *, fetcher: JsonFetcher | None = None) -> MeshtasticApiClient:
        api = config.api
        return cls(
            base_url_main=api.base_url_main,
            gps_endpoint=api.resolved_gps_endpoint(),
            device_metrics_endpoint=api.resolved_device_metrics_endpoint(),
            environment_metrics_endpoint=api.resolved_environment_metrics_endpoint(),
            timeout_seconds=api.timeout_seconds,
            fetcher=fetcher,
        )

    async def get_gps_track(self, node_id: str) -> list[Any]:
        """GPS track points for a node, or [] on any error."""
        data = await self._get(
            f"{self.gps_endpoint}:{node_id}",
            expected=list,
            what="GPS track",
        )
        return data if data is not None else []

    async def get_device_metrics(self, node_id: str) -> dict[str, Any] | None:
        """Device metrics for a node, or None on any error."""
        return await self._get(
            f"{self.device_metrics_endpoint}:{node_id}",
            expected=dict,
            what="device metrics",
        )

    async def get_environment_metrics(self, node_id: str) -> dict[str, Any] | None:
        """Environment metrics for a node, or None on any error."""
        return await self._get(
            f"{self.environment_metrics_endpoint}:{node_id}",
            expected=dict,
            what="environment metrics",
        )

    async def get_all_devices(self) -> dict[str, Any]:
        """All known devices keyed as the backend returns them, or {} on any error."""
        data = await self._get(
            f"{self.base_url_main}/devices",
            expected=dict,
            what="device list",
        )
        return data if data is not None else {}

    def status_snapshot(self) -> dict[str, Any]:
        return {
            "base_url_main": self.base_url_main,
            "gps_endpoint": self.gps_endpoint,
            "device_metrics_endpoint": self.device_metrics_endpoint,
            "environment_metrics_endpoint": self.environment_metrics_endpoint,
            "requests_total": self._requests_total,
            "failures_total": self._failures_total,
            "last_error": self._last_error,
        }

    async def _get(self, url: str, *, expected: type, what: str) -> Any | None:
        self._requests_total += 1
        try:
            payload = await self._fetcher(url, self.timeout_seconds)
            if not isinstance(payload, expected):
                raise ValueError(
                    f"unexpected payload type {type(payload).__name__}, expected {expected.__name__}"
                )
        except Exception as e:
            self._failures_total += 1
            self._last_error = str(e)
            logger.warning(f"Failed to fetch {what} from {url}: {e}")
            return None
        self._last_error = ""
        return payload

    async def _http_fetch_json(self, url: str, timeout_seconds: float) -> Any:
        async with httpx.AsyncClient(timeout=timeout_seconds) as client:
            resp = await client.get(url)
            resp.raise_for_status()
            return resp.json()
