"""
Configuration constants for the score ingester.
"""
from pathlib import Path

# --- File Type Definitions ---
# Extensions the watcher treats as candidates. Only PNG actually decodes;
# the rest are routed to the failed directory with a decode error.
ALLOWED_IMAGE_EXTS = {'.png', '.jpg', '.jpeg', '.webp'}
DECODABLE_FORMATS = {'PNG'}

# --- Image Preprocessing ---
# Screenshots larger than this are scaled down before OCR
MAX_IMAGE_WIDTH = 1920
MAX_IMAGE_HEIGHT = 1080

# --- Region Layout ---
# (left, top, right, bottom) as integer percentages of the image size.
# The results screen has a fixed layout, so no per-resolution calibration.
REGION_LAYOUT = {
    'top_left': (0, 0, 30, 20),   # artist / song / charter
    'center': (30, 0, 70, 25),    # total score / stars
    'players': (0, 25, 100, 90),  # one block per player
}

# --- Parsing ---
FILENAME_TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"
DIFFICULTIES = ['Expert', 'Hard', 'Medium', 'Easy']  # priority order
INSTRUMENTS = {
    'guitar': 'Guitar',
    'bass': 'Bass',
    'rhythm': 'Rhythm',
    'drums': 'Drums',
    'vocals': 'Vocals',
    'keys': 'Keys',
}
MAX_STARS = 7

# --- OCR ---
OCR_LANGUAGE = 'eng'
TESSDATA_SEARCH_PATHS = [
    Path("/usr/share/tesseract-ocr/5/tessdata"),
    Path("/usr/share/tesseract-ocr/4.00/tessdata"),
    Path("/usr/share/tesseract-ocr/tessdata"),
    Path("/usr/local/share/tesseract-ocr/5/tessdata"),
    Path("/usr/local/share/tesseract-ocr/4.00/tessdata"),
    Path("/usr/local/share/tesseract-ocr/tessdata"),
    Path("/usr/share/tessdata"),
    Path("/opt/homebrew/share/tessdata"),  # macOS Homebrew
]

# --- Watching ---
POLL_INTERVAL_SECONDS = 5.0
DEBOUNCE_SECONDS = 0.5           # live events: let the game finish writing
STARTUP_DEBOUNCE_SECONDS = 0.1   # files already present at startup
MAX_WORKERS = 2                  # bounds concurrent OCR runs

# --- Storage ---
DEFAULT_DB_NAME = "scores.db"
