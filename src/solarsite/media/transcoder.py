"""Image decoding, resizing and re-encoding with Pillow.

Pure functions: every decision (target size, fit, quality, format) comes in
through ``TranscodeSpec``. Output is always a single normalized format
(WebP by default) regardless of the input format or filename extension.
"""

from __future__ import annotations

import io
from dataclasses import dataclass

from PIL import Image, ImageOps, UnidentifiedImageError

from solarsite.media.errors import ImageDecodeError, ImageEncodeError
from solarsite.models.enums import FitPolicy

# Pillow format name -> MIME type for the formats we may emit
_MIME_TYPES = {
    "WEBP": "image/webp",
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "AVIF": "image/avif",
}

_RESAMPLE = Image.Resampling.LANCZOS


@dataclass(frozen=True)
class TranscodeSpec:
    """Target for one transcode call.

    width/height are ignored for FitPolicy.ORIGINAL. SHRINK uses width only
    and derives the height from the aspect ratio. COVER needs both.
    """

    width: int | None = None
    height: int | None = None
    fit: FitPolicy = FitPolicy.ORIGINAL
    quality: int = 90
    format: str = "WEBP"


@dataclass(frozen=True)
class TranscodedImage:
    """Encoded output and its pixel dimensions."""

    data: bytes
    width: int
    height: int
    mime_type: str

    @property
    def byte_size(self) -> int:
        return len(self.data)


def mime_type_for(fmt: str) -> str:
    """MIME type for a Pillow format name."""
    try:
        return _MIME_TYPES[fmt.upper()]
    except KeyError:
        raise ImageEncodeError(f"Unsupported output format: {fmt}") from None


def _check_pixel_limit(img: Image.Image) -> None:
    limit = Image.MAX_IMAGE_PIXELS
    if limit is not None and img.width * img.height > limit:
        raise ImageDecodeError(
            f"Image too large to decode: {img.width}x{img.height} exceeds {limit} pixels"
        )


def decode(data: bytes) -> Image.Image:
    """Decode bytes into a fully loaded, orientation-corrected image.

    Raises:
        ImageDecodeError: Empty input, unknown format, truncated data or an
            image over Pillow's decompression-bomb limit.
    """
    if not data:
        raise ImageDecodeError("Empty upload: no image data")
    try:
        img = Image.open(io.BytesIO(data))
        # Pillow only warns between 1x and 2x the limit; reject before load()
        _check_pixel_limit(img)
        img.load()
    except UnidentifiedImageError:
        raise ImageDecodeError("Unsupported or corrupt image: format not recognized") from None
    except Image.DecompressionBombError as e:
        raise ImageDecodeError(f"Image too large to decode: {e}") from e
    except (OSError, SyntaxError, ValueError) as e:
        raise ImageDecodeError(f"Could not decode image: {e}") from e

    # Apply the EXIF orientation tag so stored pixels match what viewers show
    return ImageOps.exif_transpose(img) or img


def probe(data: bytes) -> tuple[int, int]:
    """Return (width, height) of the decoded image.

    Dimensions are reported after EXIF orientation is applied.
    """
    img = decode(data)
    return img.size


def resize(img: Image.Image, spec: TranscodeSpec) -> Image.Image:
    """Apply the requested fit policy to a decoded image."""
    if spec.fit == FitPolicy.ORIGINAL:
        return img

    if spec.fit == FitPolicy.SHRINK:
        if spec.width is None:
            raise ValueError("SHRINK fit requires a target width")
        if img.width <= spec.width:
            return img
        height = max(1, round(img.height * spec.width / img.width))
        return img.resize((spec.width, height), _RESAMPLE)

    if spec.fit == FitPolicy.COVER:
        if spec.width is None or spec.height is None:
            raise ValueError("COVER fit requires a target width and height")
        return ImageOps.fit(img, (spec.width, spec.height), method=_RESAMPLE)

    raise ValueError(f"Unknown fit policy: {spec.fit}")


def _normalize_mode(img: Image.Image) -> Image.Image:
    """Convert to a mode every output format can encode."""
    has_alpha = img.mode in ("RGBA", "LA", "PA") or (
        img.mode == "P" and "transparency" in img.info
    )
    if has_alpha:
        return img if img.mode == "RGBA" else img.convert("RGBA")
    return img if img.mode == "RGB" else img.convert("RGB")


def encode(img: Image.Image, *, quality: int, fmt: str = "WEBP") -> bytes:
    """Encode an image into bytes of the given format."""
    mime_type_for(fmt)  # Fail early on unsupported formats
    img = _normalize_mode(img)
    if fmt.upper() == "JPEG" and img.mode == "RGBA":
        img = img.convert("RGB")

    buffer = io.BytesIO()
    try:
        img.save(buffer, format=fmt.upper(), quality=quality)
    except (OSError, ValueError, KeyError) as e:
        raise ImageEncodeError(f"Could not encode image as {fmt}: {e}") from e
    return buffer.getvalue()


def transcode(data: bytes, spec: TranscodeSpec) -> TranscodedImage:
    """Decode, resize to the requested fit, then re-encode.

    Raises:
        ImageDecodeError: Input is not a decodable image.
        ImageEncodeError: Encoding to the target format failed.
    """
    img = resize(_normalize_mode(decode(data)), spec)
    encoded = encode(img, quality=spec.quality, fmt=spec.format)
    return TranscodedImage(
        data=encoded,
        width=img.width,
        height=img.height,
        mime_type=mime_type_for(spec.format),
    )
