"""
Image Processing Utilities

Normalizes user-supplied cover photos into a payload every downstream service
can decode: the image is fully decoded, re-rasterized as RGB and re-encoded as
JPEG at a fixed quality, then base64-encoded for JSON transport.

Supports HEIC/HEIF images (common on iOS) via pillow-heif package.

Usage:
    from book_scanner.pipelines.utils.image_utils import encode_image

    payload = encode_image(Path("cover.heic"))          # base64 JPEG
    payload = encode_image(upload_bytes, max_dimension=2048)
"""

from pathlib import Path
from typing import BinaryIO, Optional, Union
import base64
import io

import pillow_heif
from PIL import Image, ImageOps, UnidentifiedImageError

from book_scanner.exceptions import DecodeError

# Register HEIC/HEIF support (iOS photos)
pillow_heif.register_heif_opener()

DEFAULT_JPEG_QUALITY = 90  # Matches canvas.toDataURL('image/jpeg', 0.9)

ImageSource = Union[Image.Image, bytes, str, Path, BinaryIO]


def load_image(source: ImageSource) -> Image.Image:
    """
    Decode an image source into a fully loaded PIL Image.

    Args:
        source: PIL Image, raw bytes, file path, or binary file object

    Returns:
        Decoded PIL Image

    Raises:
        DecodeError: If the source cannot be decoded as an image
    """
    if isinstance(source, Image.Image):
        return source

    if isinstance(source, (bytes, bytearray)):
        if not source:
            raise DecodeError("Image data is empty")
        source = io.BytesIO(source)

    try:
        image = Image.open(source)
        # Image.open is lazy; truncated data only fails on load
        image.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise DecodeError(f"Unable to decode image: {e}") from e

    return image


def image_to_base64(
    image: Union[Image.Image, str, Path],
    format: str = "JPEG",
    quality: int = DEFAULT_JPEG_QUALITY,
) -> str:
    """
    Convert PIL Image to base64 string for API transmission.

    Args:
        image: PIL Image, file path string, or Path object
        format: Output format (JPEG, PNG, etc.)
        quality: Lossy compression quality (JPEG/WEBP only)

    Returns:
        Base64-encoded image string
    """
    if isinstance(image, (str, Path)):
        image = Image.open(image)

    buffered = io.BytesIO()

    # Convert to RGB if saving as JPEG and image has alpha channel
    if format.upper() == "JPEG" and image.mode != "RGB":
        image = image.convert("RGB")

    if format.upper() in ("JPEG", "WEBP"):
        image.save(buffered, format=format, quality=quality)
    else:
        image.save(buffered, format=format)
    return base64.b64encode(buffered.getvalue()).decode("utf-8")


def base64_to_image(base64_string: str) -> Image.Image:
    """
    Convert base64 string back to PIL Image.

    Args:
        base64_string: Base64-encoded image data

    Returns:
        PIL Image object
    """
    image_data = base64.b64decode(base64_string)
    return Image.open(io.BytesIO(image_data))


def resize_for_api(image: Image.Image, max_dimension: int = 2048) -> Image.Image:
    """
    Resize image to fit within API limits while preserving aspect ratio.

    Args:
        image: Input image
        max_dimension: Maximum width or height in pixels

    Returns:
        Resized image (or original if already within limits)
    """
    width, height = image.size

    if max(width, height) <= max_dimension:
        return image

    if width > height:
        new_width = max_dimension
        new_height = int(height * (max_dimension / width))
    else:
        new_height = max_dimension
        new_width = int(width * (max_dimension / height))

    return image.resize((new_width, new_height), Image.Resampling.LANCZOS)


def auto_rotate(image: Image.Image) -> Image.Image:
    """
    Auto-rotate image based on EXIF orientation data.

    Mobile photos often have EXIF orientation that needs to be applied,
    otherwise the OCR service sees the cover sideways.
    """
    return ImageOps.exif_transpose(image)


def encode_image(
    source: ImageSource,
    quality: int = DEFAULT_JPEG_QUALITY,
    max_dimension: Optional[int] = None,
) -> str:
    """
    Re-encode any decodable image as a base64 JPEG payload.

    The image is decoded to a bitmap, oriented per EXIF, flattened to RGB,
    optionally bounded in size, and saved as JPEG at the given quality. This
    guarantees the OCR service receives a format it can read regardless of
    the capture device's native format.

    Args:
        source: PIL Image, raw bytes, file path, or binary file object
        quality: JPEG quality factor (1-95)
        max_dimension: Optional bound on the longest side in pixels

    Returns:
        Base64-encoded JPEG bytes (no data-URL prefix)

    Raises:
        DecodeError: If the source cannot be decoded as an image
    """
    image = load_image(source)

    try:
        image = auto_rotate(image)
        if image.mode != "RGB":
            image = image.convert("RGB")
        if max_dimension:
            image = resize_for_api(image, max_dimension=max_dimension)
        return image_to_base64(image, format="JPEG", quality=quality)
    except (Image.DecompressionBombError, OSError, ValueError) as e:
        raise DecodeError(f"Unable to render image: {e}") from e
