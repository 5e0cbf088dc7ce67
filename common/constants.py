"""Project-wide constants (service identity, limits, media types)."""

SERVICE_NAME: str = "fragments"

SERVICE_VERSION: str = "0.1.0"

DEFAULT_PORT: int = 8080

MAX_BODY_BYTES: int = 5 * 1024 * 1024  # 5 MiB request body limit

SUPPORTED_TYPES: frozenset = frozenset({"text/plain"})

API_PREFIX: str = "/v1"
