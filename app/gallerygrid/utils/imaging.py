"""Read layout input straight from image files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from PIL import Image, UnidentifiedImageError

from app.gallerygrid.layout.items import MAX_RATING, ContentItem

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = frozenset({".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp", ".tif", ".tiff"})

EXIF_ORIENTATION = 0x0112
EXIF_RATING = 0x4746  # Windows "Rating" (0-5 stars)

# EXIF orientations 5-8 are stored rotated by 90 degrees.
_ROTATED_ORIENTATIONS = frozenset({5, 6, 7, 8})


def read_content_item(path: str | Path, item_id: int) -> ContentItem:
    """Build a ContentItem from an image file.

    Dimensions are the displayed ones (EXIF rotation applied). Files Pillow
    cannot decode become a 0x0 item, which the layout treats as 3:2.
    """
    try:
        with Image.open(path) as img:
            width, height = img.size
            exif = img.getexif()
    except (UnidentifiedImageError, OSError) as e:
        logger.warning("Could not read image %s: %s", path, e)
        return ContentItem(id=item_id, width=0, height=0)

    if exif.get(EXIF_ORIENTATION) in _ROTATED_ORIENTATIONS:
        width, height = height, width

    rating = exif.get(EXIF_RATING)
    try:
        rating = None if rating is None else min(MAX_RATING, max(0, int(rating)))
    except (TypeError, ValueError):
        logger.warning("Ignoring malformed rating %r in %s", rating, path)
        rating = None

    return ContentItem(id=item_id, width=width, height=height, rating=rating)


def scan_folder(folder: str | Path, *, start_id: int = 1) -> List[ContentItem]:
    """Content items for every image directly inside ``folder``, by file name."""
    root = Path(folder)
    if not root.is_dir():
        raise ValueError(f"not a directory: {root}")

    paths = sorted(
        (p for p in root.iterdir() if p.is_file() and p.suffix.lower() in IMAGE_SUFFIXES),
        key=lambda p: p.name.casefold(),
    )
    return [read_content_item(p, start_id + i) for i, p in enumerate(paths)]
