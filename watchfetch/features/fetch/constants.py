"""HTTP constants for the change-aware fetch layer.

Centralizes header names, status codes and limits shared across modules.
"""

# HTTP Status Code Ranges
HTTP_STATUS_OK_MIN = 200
HTTP_STATUS_OK_MAX = 300
HTTP_STATUS_NOT_MODIFIED = 304
HTTP_STATUS_BAD_REQUEST = 400
HTTP_STATUS_SERVER_ERROR_MIN = 500
HTTP_STATUS_SERVER_ERROR_MAX = 600

# Status used for responses synthesized from transport failures
HTTP_STATUS_TRANSPORT_FAILURE = 0

# HTTP methods issued by the fetcher
METHOD_HEAD = "HEAD"
METHOD_GET = "GET"

# Request validators
HEADER_IF_NONE_MATCH = "If-None-Match"
HEADER_IF_MODIFIED_SINCE = "If-Modified-Since"

# Response validators
HEADER_ETAG = "ETag"
HEADER_LAST_MODIFIED = "Last-Modified"

# Validator pairs in priority order: (response header, request header)
VALIDATOR_HEADERS: tuple[tuple[str, str], ...] = (
    (HEADER_ETAG, HEADER_IF_NONE_MATCH),
    (HEADER_LAST_MODIFIED, HEADER_IF_MODIFIED_SINCE),
)

# Response Size Limits
DEFAULT_MAX_RESPONSE_SIZE_BYTES = 10 * 1024 * 1024  # 10 MB

# Chunk size for streaming reads
DEFAULT_CHUNK_SIZE = 8192

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_USER_AGENT = "watchfetch/0.1"
