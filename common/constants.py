"""Project-wide constants (endpoints, form parameters, default sizes)."""

CHUNK_SIZE_BYTES: int = 64 * 1024 * 1024  # 64 MiB default chunk size
STREAM_PIECE_SIZE_BYTES: int = 64 * 1024  # piece size pushed through the upload pipe
UPLOAD_PIPE_DEPTH: int = 4

LOOKUP_CACHE_TTL_SECONDS: int = 10 * 60

DEFAULT_MASTER: str = "localhost:9333"
DEFAULT_SCHEME: str = "http"
DEFAULT_TIMEOUT_SECONDS: float = 120.0

# Master endpoints
ASSIGN_PATH = "/dir/assign"
LOOKUP_PATH = "/dir/lookup"
LOOKUP_MANY_PATH = "/vol/lookup"
SUBMIT_PATH = "/submit"
GROW_PATH = "/vol/grow"
VACUUM_PATH = "/vol/vacuum"
STATUS_PATH = "/dir/status"
CLUSTER_STATUS_PATH = "/cluster/status"

# Form / query parameters
PARAM_COLLECTION = "collection"
PARAM_TTL = "ttl"
PARAM_COUNT = "count"
PARAM_REPLICATION = "replication"
PARAM_DATA_CENTER = "dataCenter"
PARAM_VOLUME_ID = "volumeId"
PARAM_GARBAGE_THRESHOLD = "garbageThreshold"
PARAM_TIMESTAMP = "ts"
PARAM_CHUNK_MANIFEST = "cm"
PARAM_RECURSIVE = "recursive"

CHUNK_CONTENT_TYPE = "application/octet-stream"
MANIFEST_CONTENT_TYPE = "application/json"

# Statuses a DELETE may return and still count as done (404 = already gone)
DELETE_OK_STATUSES = frozenset({200, 202, 404})
