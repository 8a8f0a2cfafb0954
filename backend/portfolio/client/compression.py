"""Client-side image compression applied before uploads."""

from __future__ import annotations

import io

from PIL import Image


MAX_WIDTH = 1200
MAX_HEIGHT = 1200
JPEG_QUALITY = 80


def target_size(width: int, height: int, max_width: int = MAX_WIDTH, max_height: int = MAX_HEIGHT) -> tuple[int, int]:
    """Scale down by the dominant side only, keeping the aspect ratio.

    Landscape images are bounded by ``max_width``; portrait and square images
    by ``max_height``.
    """

    if width > height:
        if width > max_width:
            return max_width, max(1, round(height * max_width / width))
    elif height > max_height:
        return max(1, round(width * max_height / height)), max_height
    return width, height


def compress_image(
    data: bytes,
    *,
    max_width: int = MAX_WIDTH,
    max_height: int = MAX_HEIGHT,
    quality: int = JPEG_QUALITY,
) -> bytes:
    """Downscale ``data`` and re-encode it as a JPEG.

    Raises:
        PIL.UnidentifiedImageError: If ``data`` is not a readable image.
    """

    with Image.open(io.BytesIO(data)) as image:
        size = target_size(image.width, image.height, max_width, max_height)
        converted = image.convert("RGB")
        if size != converted.size:
            converted = converted.resize(size, Image.Resampling.LANCZOS)
        output = io.BytesIO()
        converted.save(output, format="JPEG", quality=quality)
    return output.getvalue()
