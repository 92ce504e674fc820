from __future__ import annotations

import logging
import os
from pathlib import Path

from .config import IMAGE_EXTENSIONS
from .errors import AccessDenied, ImageNotFound

logger = logging.getLogger(__name__)


def is_supported_image(name: str) -> bool:
    return Path(name).suffix.lower() in IMAGE_EXTENSIONS


def _raise_walk_error(error: OSError) -> None:
    raise error


def _is_inside(resolved_root: Path, resolved: Path) -> bool:
    return resolved != resolved_root and resolved_root in resolved.parents


def list_images(root: Path) -> list[str]:
    """Return every supported image below ``root`` as a root-relative, ``/``-joined path.

    Enumeration failures are logged and produce an empty list. Entries that
    could not be served back (links leading out of ``root``, names that are
    not valid UTF-8) are skipped.
    """
    root = Path(root)
    images: list[str] = []
    try:
        if not root.is_dir():
            raise NotADirectoryError(f"not a directory: {root}")
        resolved_root = root.resolve()
        for dirpath, _dirnames, filenames in os.walk(root, onerror=_raise_walk_error):
            relative_dir = Path(dirpath).relative_to(root)
            for filename in filenames:
                if not is_supported_image(filename):
                    continue
                path = Path(dirpath) / filename
                if not path.is_file():
                    continue
                relative = (relative_dir / filename).as_posix()
                try:
                    relative.encode("utf-8")
                except UnicodeEncodeError:
                    logger.warning("skipping file with undecodable name: %r", relative)
                    continue
                if not _is_inside(resolved_root, path.resolve()):
                    logger.warning("skipping link outside images folder: %s", relative)
                    continue
                images.append(relative)
    except OSError as exc:
        logger.error("error reading folder %s: %s", root, exc)
        return []
    return sorted(images)


def resolve_requested_path(root: Path, requested_name: str) -> Path:
    resolved_root = Path(root).resolve()
    try:
        resolved = (resolved_root / requested_name).resolve()
    except ValueError:
        raise AccessDenied() from None
    if not _is_inside(resolved_root, resolved):
        logger.warning("rejected path outside images folder: %r", requested_name)
        raise AccessDenied()
    return resolved


def find_image(root: Path, requested_name: str) -> Path:
    path = resolve_requested_path(root, requested_name)
    if not path.is_file() or not is_supported_image(requested_name):
        raise ImageNotFound()
    return path
