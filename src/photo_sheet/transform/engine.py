"""
Module: transform.engine

Purpose:
    Pure raster transforms. Each function takes a Pillow image and
    returns a new image with the transform baked in and every pixel
    opaque; inputs are never modified.

Key Functions:
    - decode_raster() / encode_raster(): bytes <-> PIL image
    - is_opaque(): Full opacity check over the alpha band
    - apply_background(): Composite onto an opaque colour fill
    - rotate(): Clockwise rotation with bounding-box expansion
    - flip(): Mirror about the vertical and/or horizontal axis
    - combine(): Rotate then flip, identical to flip(rotate(...))
    - clamp_crop_region() / crop_to_aspect(): Aspect-locked crop
    - derive_processed(): Rebuild a PhotoItem's processed raster

Dependencies:
    - PIL.Image: Raster operations
    - numpy: Alpha band inspection

Used By:
    - session.PhotoSession: Ingestion and queued transforms
    - output.renderer: Decodes processed rasters
"""

from __future__ import annotations

import io
import logging
import math
from typing import Optional, Tuple

import numpy as np
from PIL import Image, UnidentifiedImageError

from photo_sheet.core.errors import DecodeError, InvalidDimensionError
from photo_sheet.core.models import CropRegion, Orientation, PhotoItem

from .colors import RGB, parse_color

logger = logging.getLogger(__name__)

# Clockwise quarter turns as Pillow transposes (Pillow's ROTATE_* are anticlockwise)
_QUARTER_TURNS = {
    90: Image.Transpose.ROTATE_270,
    180: Image.Transpose.ROTATE_180,
    270: Image.Transpose.ROTATE_90,
}

# Guards floor() against cos/sin rounding on near-integral sizes
_SIZE_EPSILON = 1e-9


# ─────────────────────────────────────────────────────────────────────────────
# Encoding
# ─────────────────────────────────────────────────────────────────────────────


def decode_raster(data: bytes) -> Image.Image:
    """
    Decode encoded image bytes into a fully loaded PIL image.

    Raises:
        DecodeError: If the data is empty or not a readable image.
    """
    if not data:
        raise DecodeError("Raster data is empty")
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return img.copy()
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise DecodeError(f"Could not decode raster: {e}") from e


def encode_raster(image: Image.Image) -> bytes:
    """Encode `image` as PNG bytes."""
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def has_alpha(image: Image.Image) -> bool:
    return "A" in image.getbands() or "transparency" in image.info


def is_opaque(image: Image.Image) -> bool:
    """
    True if every pixel of `image` is fully opaque.

    Images without an alpha band (or palette transparency) are opaque
    by construction.
    """
    if not has_alpha(image):
        return True
    alpha = np.asarray(image.convert("RGBA").getchannel("A"))
    return bool((alpha == 255).all())


# ─────────────────────────────────────────────────────────────────────────────
# Transforms
# ─────────────────────────────────────────────────────────────────────────────


def apply_background(image: Image.Image, color: str) -> Image.Image:
    """
    Composite `image` over an opaque `color` fill of the same size.

    Returns:
        New RGB image with no transparency.
    """
    return _flatten(image, parse_color(color))


def rotate(image: Image.Image, degrees: float, color: str) -> Image.Image:
    """
    Rotate `image` clockwise by `degrees`.

    The output is sized to the rotated rectangle's bounding box
    (w|cos|+h|sin| by w|sin|+h|cos|); quarter turns swap width and
    height exactly. Uncovered corners are filled with `color`.

    Example:
        >>> rotate(Image.new("RGB", (40, 50)), 90, "#fff").size
        (50, 40)
    """
    rgb = parse_color(color)
    return _rotate_flat(_flatten(image, rgb), degrees, rgb)


def flip(image: Image.Image, horizontal: bool, vertical: bool, color: str) -> Image.Image:
    """Mirror `image` left-right and/or top-bottom over a `color` fill."""
    return _flip_flat(_flatten(image, parse_color(color)), horizontal, vertical)


def combine(
    image: Image.Image,
    rotation_degrees: float,
    horizontal: bool,
    vertical: bool,
    color: str,
) -> Image.Image:
    """
    Rotate then flip in one pass.

    Only the rotation resamples; flips are exact transposes, so the
    result equals flip(rotate(image, ...), ...) pixel for pixel.
    """
    rgb = parse_color(color)
    flat = _flatten(image, rgb)
    return _flip_flat(_rotate_flat(flat, rotation_degrees, rgb), horizontal, vertical)


def apply_orientation(image: Image.Image, orientation: Orientation, color: str) -> Image.Image:
    return combine(
        image,
        orientation.rotation,
        orientation.flip_horizontal,
        orientation.flip_vertical,
        color,
    )


def clamp_crop_region(
    region: CropRegion,
    image_size: Tuple[int, int],
    target_aspect_ratio: float,
) -> CropRegion:
    """
    Fit `region` to `target_aspect_ratio` and to the image bounds.

    The dimension that is too large for the ratio is narrowed first,
    then the region is shrunk (keeping the ratio) and shifted until it
    lies inside the image.

    Args:
        region: Requested crop region in source pixels.
        image_size: (width, height) of the image being cropped.
        target_aspect_ratio: Required width / height.

    Returns:
        Clamped CropRegion.

    Raises:
        InvalidDimensionError: If the ratio or image size is not positive.

    Example:
        >>> clamp_crop_region(CropRegion(0, 0, 100, 100), (100, 100), 0.8)
        CropRegion(x=0, y=0, width=80.0, height=100.0)
    """
    if target_aspect_ratio <= 0:
        raise InvalidDimensionError(f"Aspect ratio must be positive: {target_aspect_ratio}")
    img_w, img_h = image_size
    if img_w <= 0 or img_h <= 0:
        raise InvalidDimensionError(f"Image size must be positive: {img_w}x{img_h}")

    width = min(region.width, region.height * target_aspect_ratio)
    height = width / target_aspect_ratio

    if width > img_w:
        width = img_w
        height = width / target_aspect_ratio
    if height > img_h:
        height = img_h
        width = height * target_aspect_ratio

    x = min(max(region.x, 0), img_w - width)
    y = min(max(region.y, 0), img_h - height)
    return CropRegion(x, y, width, height)


def crop_to_aspect(
    image: Image.Image,
    region: CropRegion,
    target_aspect_ratio: float,
    color: str = "#ffffff",
) -> Image.Image:
    """
    Crop `image` to `region` clamped to `target_aspect_ratio`.

    The output is sized to the clamped region and composited over
    `color`.
    """
    clamped = clamp_crop_region(region, image.size, target_aspect_ratio)
    return _flatten(image.crop(clamped.as_box()), parse_color(color))


# ─────────────────────────────────────────────────────────────────────────────
# Derivation
# ─────────────────────────────────────────────────────────────────────────────


def derive_processed(item: PhotoItem, orientation: Optional[Orientation] = None) -> bytes:
    """
    Rebuild the processed raster for `item` from its immutable base.

    The base is the cut-out if one exists, otherwise the source. It is
    cropped to the item's crop region, oriented and composited over
    the background colour. Re-deriving from the base means repeated
    edits never accumulate resampling error.

    Args:
        item: Item to derive for.
        orientation: Orientation to bake; defaults to item.orientation.

    Returns:
        PNG bytes of an opaque RGB image.

    Raises:
        DecodeError: If the base raster cannot be decoded.
    """
    orientation = orientation if orientation is not None else item.orientation
    base = decode_raster(item.derivation_base)
    if base.size != tuple(item.source_size):
        # Cut-outs may come back at a different resolution
        base = base.resize(item.source_size, Image.Resampling.LANCZOS)

    box = _clip_box(item.crop_region.as_box(), base.size)
    if box != (0, 0, base.width, base.height):
        base = base.crop(box)

    result = apply_orientation(base, orientation, item.background_color)
    logger.debug(
        f"Derived {item.id}: crop={box} rotation={orientation.rotation} "
        f"flip=({orientation.flip_horizontal}, {orientation.flip_vertical}) -> {result.size}"
    )
    return encode_raster(result)


# ─────────────────────────────────────────────────────────────────────────────
# Internals
# ─────────────────────────────────────────────────────────────────────────────


def _flatten(image: Image.Image, rgb: RGB) -> Image.Image:
    """Opaque RGB copy of `image` over an `rgb` fill."""
    if not has_alpha(image):
        return image.convert("RGB")
    rgba = image.convert("RGBA")
    out = Image.new("RGB", rgba.size, rgb)
    out.paste(rgba, mask=rgba.getchannel("A"))
    return out


def _rotate_flat(image: Image.Image, degrees: float, rgb: RGB) -> Image.Image:
    """Clockwise rotation of an opaque RGB image."""
    degrees = degrees % 360
    if degrees == 0:
        return image.copy()
    quarter = _QUARTER_TURNS.get(degrees)
    if quarter is not None:
        return image.transpose(quarter)

    theta = math.radians(degrees)
    cos_t = math.cos(theta)
    sin_t = math.sin(theta)
    width, height = image.size
    out_w = max(1, math.floor(width * abs(cos_t) + height * abs(sin_t) + _SIZE_EPSILON))
    out_h = max(1, math.floor(width * abs(sin_t) + height * abs(cos_t) + _SIZE_EPSILON))

    # Inverse mapping: output pixel -> input pixel, both about their centres
    cx_in, cy_in = width / 2, height / 2
    cx_out, cy_out = out_w / 2, out_h / 2
    coefficients = (
        cos_t,
        sin_t,
        cx_in - cos_t * cx_out - sin_t * cy_out,
        -sin_t,
        cos_t,
        cy_in + sin_t * cx_out - cos_t * cy_out,
    )
    return image.transform(
        (out_w, out_h),
        Image.Transform.AFFINE,
        coefficients,
        resample=Image.Resampling.BICUBIC,
        fillcolor=rgb,
    )


def _flip_flat(image: Image.Image, horizontal: bool, vertical: bool) -> Image.Image:
    result = image
    if horizontal:
        result = result.transpose(Image.Transpose.FLIP_LEFT_RIGHT)
    if vertical:
        result = result.transpose(Image.Transpose.FLIP_TOP_BOTTOM)
    return result if result is not image else image.copy()


def _clip_box(
    box: Tuple[int, int, int, int],
    size: Tuple[int, int],
) -> Tuple[int, int, int, int]:
    """Intersect a PIL box with the image bounds, keeping it at least 1px."""
    width, height = size
    left = min(max(box[0], 0), width - 1)
    top = min(max(box[1], 0), height - 1)
    right = max(left + 1, min(box[2], width))
    bottom = max(top + 1, min(box[3], height))
    return (left, top, right, bottom)
