"""Constants for the Enphase Envoy local API client."""

PROTO_HTTP = "http"
PROTO_HTTPS = "https"

AUTH_CHECK_JWT_PATH = "/auth/check_jwt"
INVENTORY_PATH = "/inventory.json?deleted=1"
PRODUCTION_PATH = "/production.json?details=1"

DEFAULT_API_TIMEOUT = 15

# Statuses from /auth/check_jwt that count as an accepted token
AUTH_OK_STATUSES = (200, 204)

REDACTED_HEADERS = {"authorization", "cookie"}
