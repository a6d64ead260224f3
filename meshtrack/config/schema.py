"""Configuration schema using Pydantic."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings

from meshtrack.config import constants


class ApiConfig(BaseModel):
    """Backend endpoints for tracks, metrics and device lists."""
    base_url_main: str = constants.BASE_URL_MAIN
    gps_endpoint: str = ""  # Empty means {base_url_main}/gps
    device_metrics_endpoint: str = ""  # Empty means {base_url_main}/device_metrics
    environment_metrics_endpoint: str = ""  # Empty means {base_url_main}/environment_metrics
    timeout_seconds: float = constants.REQUEST_TIMEOUT_SECONDS

    def resolved_gps_endpoint(self) -> str:
        return self._resolve(self.gps_endpoint, constants.GPS_PATH)

    def resolved_device_metrics_endpoint(self) -> str:
        return self._resolve(self.device_metrics_endpoint, constants.DEVICE_METRICS_PATH)

    def resolved_environment_metrics_endpoint(self) -> str:
        return self._resolve(self.environment_metrics_endpoint, constants.ENVIRONMENT_METRICS_PATH)

    def _resolve(self, endpoint: str, default_path: str) -> str:
        value = str(endpoint or "").strip()
        if value:
            return value
        return f"{self.base_url_main.rstrip('/')}{default_path}"


class ThresholdsConfig(BaseModel):
    """Liveness thresholds in seconds."""
    device_active_threshold: int = Field(default=constants.DEVICE_ACTIVE_THRESHOLD, ge=0)
    device_recently_active_threshold: int = Field(
        default=constants.DEVICE_RECENTLY_ACTIVE_THRESHOLD,
        ge=0,
    )


class Config(BaseSettings):
    """Root configuration for meshtrack."""
    api: ApiConfig = Field(default_factory=ApiConfig)
    thresholds: ThresholdsConfig = Field(default_factory=ThresholdsConfig)

    model_config = ConfigDict(
        env_prefix="MESHTRACK_",
        env_nested_delimiter="__"
    )
