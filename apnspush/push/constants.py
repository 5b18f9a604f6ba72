"""
Constants for the APNS push client.
"""

# APNS Hosts
APNS_PRODUCTION_HOST = "api.push.apple.com"
APNS_SANDBOX_HOST = "api.sandbox.push.apple.com"
APNS_PORT = 443
APNS_ALT_PORT = 2197

# APNS API path
APNS_DEVICE_PATH = "/3/device/{device_token}"

USER_AGENT = "apnspush"

# JWT configuration
JWT_ALGORITHM = "ES256"

# Timing defaults (intervals in microseconds, timeouts in seconds)
WRITE_INTERVAL = 10_000
CONNECT_RETRY_INTERVAL = 1_000_000
CONNECT_RETRY_TIMES = 3
SEND_RETRY_TIMES = 3
CONNECT_TIMEOUT = 10
REQUEST_TIMEOUT = 30

# Status code for transport failures (not an Apple status)
STATUS_CODE_INTERNAL_ERROR = 999

# Highest status code treated as a permanent delivery failure
PERMANENT_FAILURE_MAX_STATUS = 413

HTTP_ERROR_RESPONSE_MESSAGES = {
    200: "Success",
    400: "Bad request",
    403: "There was an error with the certificate",
    405: "The request used a bad :method value. Only POST requests are supported",
    410: "The device token is no longer active for the topic",
    413: "The notification payload was too large",
    429: "The server received too many requests for the same device token",
    500: "Internal server error",
    503: "The server is shutting down and unavailable",
    STATUS_CODE_INTERNAL_ERROR: "Internal error",
}

# Payload limits
PAYLOAD_MAXIMUM_SIZE = 2048
APPLE_RESERVED_NAMESPACE = "aps"
DEFAULT_EXPIRY_SECONDS = 604800  # 7 days
