"""Image pre-processing before vision calls."""

import io
import logging

from PIL import Image, ImageOps, UnidentifiedImageError

logger = logging.getLogger(__name__)


def shrink_image(
    image_bytes: bytes, mime_type: str | None, max_edge: int, quality: int
) -> tuple[bytes, str | None]:
    """Bound the longer edge and re-encode as JPEG.

    Returns the original bytes and MIME type when the image can't be decoded
    or exceeds Pillow's decompression bomb limit.
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as opened:
            img = ImageOps.exif_transpose(opened).convert("RGB")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError):
        logger.warning(
            "Could not decode image; sending original bytes",
            extra={"mime_type": mime_type, "size": len(image_bytes)},
        )
        return image_bytes, mime_type
    if max(img.size) > max_edge:
        img.thumbnail((max_edge, max_edge), Image.Resampling.LANCZOS)
    buf = io.BytesIO()
    img.save(buf, format="JPEG", quality=quality, optimize=True)
    return buf.getvalue(), "image/jpeg"
