from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from io import BytesIO
from pathlib import Path
from typing import Any

from PIL import ExifTags, Image

from .errors import MetadataReadError

logger = logging.getLogger(__name__)

# Pillow names both of these JPEG variants differently from their file extension.
_FORMAT_TAGS = {"JPEG": "jpg", "MPO": "jpg"}


def _clean_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    text = str(value).strip("\x00 ").strip()
    return text or None


def _to_degrees(values: Any) -> float | None:
    try:
        d = float(values[0])
        m = float(values[1])
        s = float(values[2])
    except (TypeError, ValueError, IndexError, ZeroDivisionError):
        return None
    return d + m / 60.0 + s / 3600.0


def _parse_gps(gps_ifd: dict[int, Any]) -> dict[str, float] | None:
    lat = _to_degrees(gps_ifd.get(ExifTags.GPS.GPSLatitude))
    lon = _to_degrees(gps_ifd.get(ExifTags.GPS.GPSLongitude))
    if lat is None or lon is None:
        return None
    if _clean_text(gps_ifd.get(ExifTags.GPS.GPSLatitudeRef)) == "S":
        lat = -lat
    if _clean_text(gps_ifd.get(ExifTags.GPS.GPSLongitudeRef)) == "W":
        lon = -lon
    return {"latitude": round(lat, 6), "longitude": round(lon, 6)}


def _format_shutter(value: Any) -> str | None:
    if value is None:
        return None
    try:
        seconds = float(value)
    except (TypeError, ValueError, ZeroDivisionError):
        return _clean_text(value)
    if not seconds > 0:
        return None
    if seconds < 1:
        return f"1/{int(round(1 / seconds))}"
    return f"{seconds:g}s"


def _format_number(value: Any, template: str) -> str | None:
    try:
        number = float(value)
    except (TypeError, ValueError, ZeroDivisionError):
        return None
    if not math.isfinite(number):
        return None
    return template.format(number)


def _camera_name(make: str | None, model: str | None) -> str | None:
    if make and model:
        if model.lower().startswith(make.lower()):
            return model
        return f"{make} {model}"
    return make or model


def read_dimensions(payload: bytes) -> tuple[int | None, int | None, str | None]:
    """Width, height and format tag for an encoded image, or ``None`` for each when Pillow cannot tell."""
    try:
        with Image.open(BytesIO(payload)) as im:
            width, height = im.size
            fmt = im.format
    except Exception as exc:
        logger.debug("could not determine dimensions: %s", exc)
        return None, None, None
    tag = _FORMAT_TAGS.get(fmt, fmt.lower()) if fmt else None
    return width, height, tag


def read_exif(payload: bytes) -> dict[str, Any] | None:
    """Extract the slideshow's EXIF summary, or ``None`` when nothing usable is present."""
    try:
        with Image.open(BytesIO(payload)) as im:
            exif = im.getexif()
            exif_ifd = exif.get_ifd(ExifTags.IFD.Exif)
            gps_ifd = exif.get_ifd(ExifTags.IFD.GPSInfo)
    except Exception as exc:
        logger.debug("could not read EXIF: %s", exc)
        return None

    if not exif and not exif_ifd and not gps_ifd:
        return None

    iso = exif_ifd.get(ExifTags.Base.ISOSpeedRatings)
    if isinstance(iso, tuple):
        iso = iso[0] if iso else None

    flash = exif_ifd.get(ExifTags.Base.Flash)

    fields: dict[str, Any] = {
        "camera": _camera_name(
            _clean_text(exif.get(ExifTags.Base.Make)),
            _clean_text(exif.get(ExifTags.Base.Model)),
        ),
        "lens": _clean_text(exif_ifd.get(ExifTags.Base.LensModel)),
        "date_taken": _clean_text(
            exif_ifd.get(ExifTags.Base.DateTimeOriginal) or exif.get(ExifTags.Base.DateTime)
        ),
        "aperture": _format_number(exif_ifd.get(ExifTags.Base.FNumber), "f/{:g}"),
        "shutter_speed": _format_shutter(exif_ifd.get(ExifTags.Base.ExposureTime)),
        "iso": int(iso) if isinstance(iso, (int, float)) else None,
        "focal_length": _format_number(exif_ifd.get(ExifTags.Base.FocalLength), "{:g}mm"),
        # Bit 0 of the Flash tag records whether the flash fired.
        "flash": bool(int(flash) & 1) if isinstance(flash, int) else None,
        "gps": _parse_gps(gps_ifd) if gps_ifd else None,
        "software": _clean_text(exif.get(ExifTags.Base.Software)),
        "artist": _clean_text(exif.get(ExifTags.Base.Artist)),
        "copyright": _clean_text(exif.get(ExifTags.Base.Copyright)),
    }
    summary = {key: value for key, value in fields.items() if value is not None}
    return summary or None


def compute_metadata(path: Path, filename: str) -> dict[str, Any]:
    try:
        stat = path.stat()
        payload = path.read_bytes()
    except OSError as exc:
        logger.error("failed to read %s: %s", path, exc)
        raise MetadataReadError() from exc

    width, height, image_type = read_dimensions(payload)
    metadata: dict[str, Any] = {
        "filename": filename,
        "width": width,
        "height": height,
        "size": stat.st_size,
        "modified": datetime.fromtimestamp(stat.st_mtime, timezone.utc).isoformat(),
        "type": image_type,
    }

    exif = read_exif(payload)
    if exif is not None:
        metadata["exif"] = exif
    return metadata
