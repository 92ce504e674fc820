from __future__ import annotations

import argparse
import logging
from pathlib import Path

import uvicorn

from .config import DEFAULT_IMAGES_DIR, DEFAULT_PORT
from .main import create_app
from .storage import list_images

logger = logging.getLogger("slideshow")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Serve a folder of images as a fullscreen slideshow.")
    parser.add_argument(
        "folder",
        nargs="?",
        type=Path,
        default=DEFAULT_IMAGES_DIR,
        help="folder to serve images from (default: %(default)s)",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    folder = args.folder.resolve()
    app = create_app(folder)

    logger.info("serving images from: %s", folder)
    images = list_images(folder)
    logger.info("found %d images", len(images))
    if not images:
        logger.warning("no images found, add images to the folder or pass a different one: python -m slideshow /path/to/images")

    logger.info("slideshow server running at http://localhost:%d", DEFAULT_PORT)
    uvicorn.run(app, host="0.0.0.0", port=DEFAULT_PORT)


if __name__ == "__main__":
    main()
