from __future__ import annotations

import logging
from pathlib import Path

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import FileResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles

from .config import DEFAULT_IMAGES_DIR, PUBLIC_DIR
from .errors import SlideshowError
from .image_ops import compute_metadata
from .storage import find_image, list_images

logger = logging.getLogger(__name__)
router = APIRouter()


def _images_folder(request: Request) -> Path:
    return request.app.state.images_folder


@router.get("/api/images")
def list_images_route(request: Request) -> list[str]:
    return list_images(_images_folder(request))


@router.get("/api/images/{filename:path}/metadata")
def image_metadata(request: Request, filename: str):
    path = find_image(_images_folder(request), filename)
    return compute_metadata(path, filename)


@router.get("/images/{filename:path}")
def serve_image(request: Request, filename: str):
    path = find_image(_images_folder(request), filename)
    return FileResponse(path)


async def slideshow_error_handler(request: Request, exc: SlideshowError) -> PlainTextResponse:
    logger.info("%s %s: %s", request.method, request.url.path, exc.message)
    return PlainTextResponse(exc.message, status_code=exc.status_code)


def create_app(images_folder: Path = DEFAULT_IMAGES_DIR) -> FastAPI:
    app = FastAPI(title="Folder Slideshow")
    app.state.images_folder = Path(images_folder)
    app.add_exception_handler(SlideshowError, slideshow_error_handler)
    app.include_router(router)

    # The browser shell is optional; mounted last so the API routes win.
    if PUBLIC_DIR.is_dir():
        app.mount("/", StaticFiles(directory=PUBLIC_DIR, html=True), name="public")
    return app


app = create_app()
