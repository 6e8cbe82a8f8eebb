"""
Pipeline Stage Implementations

Source-image stages that run before the prediction is submitted:
decode the caller's base64 photo, normalize it to a square PNG, and
publish it at a URL the predictor can fetch.
"""

import io
import base64
import asyncio
import binascii

from PIL import Image, ImageOps, UnidentifiedImageError

from aibooth.core.exceptions import UpstreamIOError
from aibooth.core.logging import get_logger, with_logging
from aibooth.core.metrics import track_stage_latency
from aibooth.core.storage import IStorage

logger = get_logger(__name__)

DATA_URL_MARKER = "base64,"

# Modes PNG can hold without conversion
PNG_MODES = {"1", "L", "LA", "I", "P", "RGB", "RGBA"}


# =============================================================================
# Stage 1: Decode
# =============================================================================

@with_logging("decode")
def decode_photo(photo: str) -> bytes:
    """Decode a plain base64 string or a data URL (data:image/...;base64,...)."""
    if DATA_URL_MARKER in photo:
        photo = photo.split(DATA_URL_MARKER, 1)[1]
    try:
        return base64.b64decode(photo, validate=False)
    except (binascii.Error, ValueError) as e:
        raise UpstreamIOError(f"Invalid base64 photo: {e}")


# =============================================================================
# Stage 2: Normalize (resize + cover crop, PNG)
# =============================================================================

def normalize_image(image_bytes: bytes, size: int = 512) -> bytes:
    """
    Scale and center-crop to size x size, re-encoded as PNG.

    Args:
        image_bytes: Encoded input image (any format Pillow reads)
        size: Edge length of the square output

    Returns:
        PNG bytes
    """
    try:
        image = Image.open(io.BytesIO(image_bytes))
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise UpstreamIOError(f"Unreadable image: {e}")

    if image.mode not in PNG_MODES:
        image = image.convert("RGBA" if "A" in image.getbands() else "RGB")

    fitted = ImageOps.fit(image, (size, size), method=Image.Resampling.LANCZOS)

    output_buffer = io.BytesIO()
    fitted.save(output_buffer, format="PNG")
    return output_buffer.getvalue()


@with_logging("normalize")
async def normalize_stage(image_bytes: bytes, size: int = 512) -> bytes:
    """Run normalize_image in a worker thread so the event loop keeps serving."""
    with track_stage_latency("normalize"):
        output = await asyncio.to_thread(normalize_image, image_bytes, size)

    logger.info(
        "image_normalized",
        input_size=len(image_bytes),
        output_size=len(output),
        dimensions=[size, size]
    )
    return output


# =============================================================================
# Stage 3: Upload
# =============================================================================

@with_logging("upload")
async def upload_stage(
    storage: IStorage,
    image_bytes: bytes,
    filename: str,
    folder: str
) -> str:
    """Upload the normalized image and return its public URL."""
    with track_stage_latency("upload"):
        url = await storage.upload(
            image_bytes,
            filename,
            folder=folder,
            content_type="image/png"
        )

    logger.info("image_uploaded", url=url)
    return url
