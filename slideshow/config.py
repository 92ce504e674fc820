import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent
DEFAULT_IMAGES_DIR = BASE_DIR / "images"
PUBLIC_DIR = BASE_DIR / "public"

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp", ".svg")

DEFAULT_PORT = int(os.environ.get("SLIDESHOW_PORT", "3000"))

DEFAULT_INTERVAL_SECONDS = 5.0
IDLE_CURSOR_SECONDS = 3.0
CLOCK_PERIOD_SECONDS = 1.0
