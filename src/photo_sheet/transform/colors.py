"""
Module: transform.colors

Purpose:
    Colour string parsing for background fills and outlines. Accepts
    anything Pillow's ImageColor understands (hex, rgb(), names) and
    always yields an opaque RGB triple.

Key Functions:
    - parse_color(): Colour string -> (r, g, b)
    - is_valid_color(): Validation helper for settings input
"""

from __future__ import annotations

from typing import Tuple

from PIL import ImageColor

RGB = Tuple[int, int, int]


def parse_color(color: str) -> RGB:
    """
    Parse a colour string into an opaque RGB triple.

    Any alpha component in the input is dropped; backgrounds and
    outlines are always fully opaque.

    Raises:
        ValueError: If Pillow does not recognise the colour.

    Example:
        >>> parse_color("#ff000080")
        (255, 0, 0)
    """
    try:
        value = ImageColor.getrgb(color)
    except (ValueError, AttributeError) as e:
        raise ValueError(f"Unrecognised colour: {color!r}") from e
    return (value[0], value[1], value[2])


def is_valid_color(color: str) -> bool:
    try:
        parse_color(color)
    except ValueError:
        return False
    return True
