"""
RoamNY Auto-Stamper Default Parameters
Geographic bounds, sampling cadence, provider settings and work directories.
"""

import os

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

# Work areas
DOWNLOADS_DIR = os.path.join(BASE_DIR, ".downloads")
FRAMES_DIR = os.path.join(BASE_DIR, ".frames-tmp")
OUTPUT_DIR = os.path.join(BASE_DIR, "data", "seed", "routes")

# Frame sampling
DEFAULT_INTERVAL_S = 30  # seconds between captured frames
FRAME_MAX_WIDTH = 1280   # px, frames are downscaled before inference
FRAME_JPEG_QUALITY = 90

# Download profile (720p max to keep disk and decode cost down)
DOWNLOAD_FORMAT = "bestvideo[height<=720]+bestaudio/best[height<=720]/best"
DOWNLOAD_MERGE_FORMAT = "mp4"
METADATA_TIMEOUT_S = 120
DOWNLOAD_TIMEOUT_S = 600

# Vision inference
VISION_MODEL = os.environ.get("STAMPER_VISION_MODEL", "claude-sonnet-4-5-20250929")
VISION_MAX_TOKENS = 600
VISION_RETRIES = 2           # retries after the first attempt (3 attempts total)
VISION_BACKOFF_STEP_S = 1.0  # delay before retry n is n * step

# Geocoding
# (west, south, east, north): Manhattan plus the edges of Brooklyn and Queens
NYC_BBOX = (-74.05, 40.68, -73.90, 40.85)
MAPBOX_GEOCODE_URL = "https://api.mapbox.com/geocoding/v5/mapbox.places/{query}.json"
MAPBOX_TYPES = "poi,address,neighborhood,place"
NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"
GEOCODE_TIMEOUT_S = 15
GEOCODE_DELAY_S = 0.4  # pause after every geocode call (rate limit)
USER_AGENT = "RoamNY Auto-Stamper/1.0"

# Waypoint synthesis
DEDUP_THRESHOLD_DEG = 0.00005  # ~5 m at NYC latitude, planar degree distance
COORD_DECIMALS = 4
CONFIDENCE_LEVELS = ("high", "medium", "low", "none")

# Output
SLUG_MAX_LENGTH = 80
THUMBNAIL_URL_TEMPLATE = "https://img.youtube.com/vi/{video_id}/hqdefault.jpg"

# Credentials (environment variable names)
ANTHROPIC_KEY_ENV = "ANTHROPIC_API_KEY"
MAPBOX_TOKEN_ENVS = ("MAPBOX_TOKEN", "NEXT_PUBLIC_MAPBOX_TOKEN")
