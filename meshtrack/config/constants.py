"""Default endpoints and liveness thresholds."""

BASE_URL_MAIN = "http://localhost:8080/api"

GPS_PATH = "/gps"
DEVICE_METRICS_PATH = "/device_metrics"
ENVIRONMENT_METRICS_PATH = "/environment_metrics"

GPS_ENDPOINT = f"{BASE_URL_MAIN}{GPS_PATH}"
DEVICE_METRICS_ENDPOINT = f"{BASE_URL_MAIN}{DEVICE_METRICS_PATH}"
ENVIRONMENT_METRICS_ENDPOINT = f"{BASE_URL_MAIN}{ENVIRONMENT_METRICS_PATH}"

REQUEST_TIMEOUT_SECONDS = 10.0

DEVICE_ACTIVE_THRESHOLD = 12 * 60 * 60  # seconds
DEVICE_RECENTLY_ACTIVE_THRESHOLD = 24 * 60 * 60  # seconds
