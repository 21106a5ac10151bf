"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

DEFAULT_START_TIME = time(9, 0)
DEFAULT_END_TIME = time(17, 0)

# Confidence is always on a 0-100 scale.
MAX_CONFIDENCE = 100.0
SENTINEL_CONFIDENCE = 100.0
DEFAULT_AUTO_VERIFY_THRESHOLD = 80.0

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 200

DEFAULT_SESSION_DAYS = 7
DEFAULT_IMAGE_FOLDER = "/attendance/"
DEFAULT_UPLOAD_TIMEOUT_SECONDS = 10
