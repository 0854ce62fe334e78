"""Image processing utilities for the QC web app.

Screenshots arrive in whatever format the user's device produced (HEIC from
iPads, WEBP from browsers). They are validated and converted to PNG before
they are sent to the vision model.
"""

import sys
from io import BytesIO
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError
from pillow_heif import register_heif_opener

# Handle imports for both direct execution and package import
if __package__ is None or __package__ == "":
    sys.path.insert(0, str(Path(__file__).parent))
    from config import MAX_IMAGE_SIZE
    from logging_utils import log_interaction
else:
    from .config import MAX_IMAGE_SIZE
    from .logging_utils import log_interaction

__all__ = ["prepare_screenshot", "MAX_IMAGE_SIZE"]

# HEIF/HEIC support for Pillow
register_heif_opener()


def _too_large(size: int, suffix: str = "") -> str:
    size_mb = size / (1024 * 1024)
    return f"Image too large{suffix} ({size_mb:.1f}MB). Please use an image smaller than 5MB."


def prepare_screenshot(content: Optional[bytes]) -> Tuple[Optional[bytes], Optional[str], Optional[str]]:
    """Validate a screenshot upload and convert it to PNG.

    Args:
        content: Raw uploaded bytes

    Returns:
        Tuple of (png_bytes, mime_type, error_message).
        - If successful: (png_bytes, "image/png", None)
        - If the image is too large or unreadable: (None, None, "error message for user")
        - If there is no image: (None, None, None)
    """
    if not content:
        return None, None, None

    if len(content) > MAX_IMAGE_SIZE:
        return None, None, _too_large(len(content))

    try:
        img = Image.open(BytesIO(content))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        log_interaction("image_processing_error", {"error": str(e), "size": len(content)})
        return None, None, "Could not read the uploaded image. Please upload a PNG, JPEG, WEBP or HEIC screenshot."

    # Flatten transparency onto white so text stays legible
    if img.mode in ("RGBA", "LA", "P"):
        if img.mode == "P":
            img = img.convert("RGBA")
        background = Image.new("RGB", img.size, (255, 255, 255))
        background.paste(img, mask=img.split()[-1])
        img = background
    elif img.mode != "RGB":
        img = img.convert("RGB")

    output = BytesIO()
    img.save(output, format="PNG")
    png_data = output.getvalue()
    if len(png_data) > MAX_IMAGE_SIZE:
        return None, None, _too_large(len(png_data), " after processing")

    return png_data, "image/png", None
