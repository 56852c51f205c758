"""
Constants for chuk-mcp-relief server.

All magic strings, tile source metadata, and configuration values live here.
"""


class ServerConfig:
    NAME = "chuk-mcp-relief"
    VERSION = "0.1.0"
    DESCRIPTION = "Layered Relief Model (DEM to laser-cut SVG layers) MCP Server"


class StorageProvider:
    MEMORY = "memory"
    S3 = "s3"
    FILESYSTEM = "filesystem"


class SessionProvider:
    MEMORY = "memory"
    REDIS = "redis"


class EnvVar:
    ARTIFACTS_PROVIDER = "CHUK_ARTIFACTS_PROVIDER"
    BUCKET_NAME = "BUCKET_NAME"
    REDIS_URL = "REDIS_URL"
    ARTIFACTS_PATH = "CHUK_ARTIFACTS_PATH"
    AWS_ACCESS_KEY_ID = "AWS_ACCESS_KEY_ID"
    AWS_SECRET_ACCESS_KEY = "AWS_SECRET_ACCESS_KEY"
    AWS_ENDPOINT_URL_S3 = "AWS_ENDPOINT_URL_S3"
    MCP_STDIO = "MCP_STDIO"
    TILE_URL = "RELIEF_TILE_URL"
    TILE_TIMEOUT_S = "RELIEF_TILE_TIMEOUT_S"
    FETCH_CONCURRENCY = "RELIEF_FETCH_CONCURRENCY"
    TILE_CACHE_MB = "RELIEF_TILE_CACHE_MB"


# ---------------------------------------------------------------------------
# Elevation tiles
# ---------------------------------------------------------------------------

# Terrarium PNG tiles (Mapzen / AWS open data). Any provider serving the same
# encoding under an XYZ template can be swapped in via RELIEF_TILE_URL.
DEFAULT_TILE_URL = "https://s3.amazonaws.com/elevation-tiles-prod/terrarium/{z}/{x}/{y}.png"
TILE_ZOOM = 12
TILE_SIZE = 256
MAX_TILES = 64

# elevation = R * 256 + G + B / 256 - 32768
TERRARIUM_OFFSET = 32768.0

TILE_SOURCE = {
    "id": "terrarium",
    "name": "Terrarium elevation tiles",
    "encoding": "terrarium",
    "zoom": TILE_ZOOM,
    "tile_size": TILE_SIZE,
    "vertical_unit": "metres",
    "tiling_scheme": "XYZ Web Mercator",
    "license": "Various open sources (SRTM, GMTED, ETOPO1, NED, ...)",
}

# Web Mercator latitude limit (poles excluded)
MAX_MERCATOR_LAT = 85.0511287798

# ---------------------------------------------------------------------------
# Export defaults
# ---------------------------------------------------------------------------

OUTPUT_UNITS = ["in", "mm"]
DEFAULT_UNITS = "in"
DEFAULT_WIDTH = 20.0
DEFAULT_HEIGHT = 12.0
DEFAULT_INTERVAL_M = 30.0
DEFAULT_GRID = 256
MIN_GRID = 64
MAX_GRID = 1024

DEFAULT_REGISTRATION_MARKS = True
DEFAULT_MARK_DIAMETER = 0.125
DEFAULT_MARK_INSET = 0.35

# Hairline stroke width in final physical units; cutters treat it as CUT.
HAIRLINE_STROKE = {
    "in": 0.001,
    "mm": 0.0254,
}
STROKE_COLOR = "black"

ARCHIVE_NAME = "topo_layers.zip"
MANIFEST_NAME = "README.txt"
LAYER_EXTENSION = "svg"
SVG_MIME = "image/svg+xml"
TEXT_MIME = "text/plain"
ZIP_MIME = "application/zip"

# ---------------------------------------------------------------------------
# Network, cache & retry
# ---------------------------------------------------------------------------

DEFAULT_TILE_TIMEOUT_S = 15.0
DEFAULT_FETCH_CONCURRENCY = 8
TILE_CACHE_MAX_BYTES = 64 * 1024 * 1024  # 64 MB total
TILE_CACHE_MAX_ITEM = 2 * 1024 * 1024  # 2 MB per item
RETRY_ATTEMPTS = 3
RETRY_WAIT_MIN = 1
RETRY_WAIT_MAX = 10

# Marching squares: crossings stay at least this far (grid units) from either edge end
CONTOUR_EDGE_MARGIN = 1e-3

EXPORT_TOOLS = [
    "relief_status",
    "relief_capabilities",
    "relief_check_area",
    "relief_plan_layers",
    "relief_export_layers",
]


class ErrorCode:
    INVALID_CONFIG = "INVALID_CONFIG"
    AREA_TOO_LARGE = "AREA_TOO_LARGE"
    TILE_FETCH_FAILED = "TILE_FETCH_FAILED"
    DEGENERATE_ELEVATION = "DEGENERATE_ELEVATION"
    NO_LAYERS = "NO_LAYERS"
    INTERNAL = "INTERNAL"


class ErrorMessages:
    INVALID_BBOX = "Invalid bounding box: must be [west, south, east, north]"
    INVALID_BBOX_VALUES = "Invalid bounding box values: west ({}) must be < east ({})"
    INVALID_BBOX_LAT = "Invalid bounding box values: south ({}) must be < north ({})"
    INVALID_LON = "Longitude {} outside [-180, 180]"
    INVALID_LAT = "Latitude {} outside Web Mercator range (+/-{:.4f})"
    INVALID_INTERVAL = "interval_m must be a finite number > 0, got {}"
    MARKS_OFF_CANVAS = "Registration marks (diameter {}, inset {}) do not fit a {} x {} canvas"
    NO_ARTIFACT_STORE = (
        "No artifact store available. Configure CHUK_ARTIFACTS_PROVIDER "
        "environment variable (memory, filesystem, or s3)."
    )
    AREA_TOO_LARGE = "Selection too large (needs {} elevation tiles, max {}). Zoom in more."
    TILE_FETCH_FAILED = "Tile fetch failed for {}: {}"
    TILE_MISSING = "Tile {} missing from fetched set"
    TILE_BAD_SHAPE = "expected {}x{} pixels, got {}x{}"
    DEGENERATE_ELEVATION = "Elevation data invalid for this area (min {}, max {})"
    NO_LAYERS = (
        "No layers produced for elevation range {:.1f}m to {:.1f}m at interval {}m. "
        "Try a smaller interval."
    )
    GRID_TOO_SMALL = "Grid size must be >= {}, got {}"


class SuccessMessages:
    CHECK_AREA_OK = "Area needs {} tiles (limit {})"
    CHECK_AREA_TOO_LARGE = "Area needs {} tiles, exceeds limit of {}"
    PLAN_COMPLETE = "{} layers planned at {}m interval"
    EXPORT_COMPLETE = "Exported {} layers ({:.1f}m to {:.1f}m, {}m interval)"
