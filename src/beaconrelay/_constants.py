"""Internal constants shared across the package."""

USER_AGENT = "beaconrelay/1"

DEFAULT_SOURCE_BASE_URL = "http://localhost:3002"
DEFAULT_POSITION_PATH = "/api/position/getPosition"
DEFAULT_PERSISTENCE_BASE_URL = "http://localhost:3002"
DEFAULT_TEMPERATURE_PATH = "/api/temperature/addTemp"

DEFAULT_MQTT_URL = "mqtt://localhost:1883"
DEFAULT_TOPIC_PREFIX = "beacon"

LIVE_EVENT_NAME = "beaconData"
DEFAULT_LIVE_PATH = "/ws"

# ------------------------------------------------------------------
# MQTT URL schemes -> (default port, tls, paho transport)
# ------------------------------------------------------------------

MQTT_SCHEMES: dict[str, tuple[int, bool, str]] = {
    "mqtt": (1883, False, "tcp"),
    "tcp": (1883, False, "tcp"),
    "mqtts": (8883, True, "tcp"),
    "ssl": (8883, True, "tcp"),
    "tls": (8883, True, "tcp"),
    "ws": (80, False, "websockets"),
    "wss": (443, True, "websockets"),
}

# ------------------------------------------------------------------
# Uptime decomposition
# ------------------------------------------------------------------

SECONDS_PER_DAY = 24 * 60 * 60
SECONDS_PER_HOUR = 60 * 60
SECONDS_PER_MINUTE = 60

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
