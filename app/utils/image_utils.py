"""
Image processing utilities for job photo uploads.
"""

import io

from PIL import Image, ImageOps


def prepare_photo(image_bytes, max_dimension=1200, quality=85):
    """
    Normalize an uploaded photo for storage.

    The image is rotated according to its EXIF orientation, downscaled so
    that neither side exceeds ``max_dimension`` (never upscaled) and
    re-encoded as JPEG.

    Args:
        image_bytes: Raw uploaded file content
        max_dimension: Longest allowed side in pixels
        quality: JPEG quality

    Returns:
        Tuple of (jpeg_bytes, width, height)

    Raises:
        ValueError: If the content is not a readable image
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            img = ImageOps.exif_transpose(img)
            if img.mode not in ('RGB', 'L'):
                img = img.convert('RGB')
            img.thumbnail((max_dimension, max_dimension))

            buffered = io.BytesIO()
            img.save(buffered, format='JPEG', quality=quality, optimize=True)
            return buffered.getvalue(), img.width, img.height
    except (OSError, Image.DecompressionBombError) as e:
        raise ValueError(f"Unreadable image: {e}") from e
