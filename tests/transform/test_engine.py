"""
Unit Tests for the raster transform engine.

Pixel equality is checked with numpy on the decoded arrays.
"""

import itertools

import numpy as np
import pytest
from PIL import Image

from photo_sheet.core.errors import DecodeError, InvalidDimensionError
from photo_sheet.core.models import CropRegion, Orientation, PhotoItem, TargetSize
from photo_sheet.transform.engine import (
    apply_background,
    clamp_crop_region,
    combine,
    crop_to_aspect,
    decode_raster,
    derive_processed,
    encode_raster,
    flip,
    is_opaque,
    rotate,
)


def _same_pixels(a: Image.Image, b: Image.Image) -> bool:
    return a.size == b.size and np.array_equal(np.asarray(a), np.asarray(b))


class TestDecoding:

    def test_decode_when_corrupt_bytes_then_raises_decode_error(self):
        with pytest.raises(DecodeError):
            decode_raster(b"definitely not an image")

    def test_decode_when_empty_then_raises_decode_error(self):
        with pytest.raises(DecodeError, match="empty"):
            decode_raster(b"")

    def test_encode_when_decoded_then_same_pixels(self, quadrant_image):
        assert _same_pixels(decode_raster(encode_raster(quadrant_image)), quadrant_image)


class TestApplyBackground:

    def test_apply_background_when_transparent_input_then_fully_opaque(self, transparent_image):
        result = apply_background(transparent_image, "#00ff00")
        assert result.mode == "RGB"
        assert is_opaque(result)
        assert result.getpixel((0, 0)) == (0, 255, 0)
        assert result.getpixel((15, 5)) == (255, 0, 0)

    def test_apply_background_when_called_then_input_not_mutated(self, transparent_image):
        before = np.asarray(transparent_image).copy()
        apply_background(transparent_image, "#000000")
        assert np.array_equal(before, np.asarray(transparent_image))

    def test_is_opaque_when_alpha_has_holes_then_false(self, transparent_image):
        assert not is_opaque(transparent_image)

    def test_apply_background_when_bad_color_then_raises_value_error(self, quadrant_image):
        with pytest.raises(ValueError, match="Unrecognised colour"):
            apply_background(quadrant_image, "not-a-colour")


class TestIdentity:

    def test_rotate_when_zero_degrees_then_equals_apply_background(self, transparent_image):
        expected = apply_background(transparent_image, "#123456")
        assert _same_pixels(rotate(transparent_image, 0, "#123456"), expected)

    def test_flip_when_no_axes_then_equals_apply_background(self, transparent_image):
        expected = apply_background(transparent_image, "#123456")
        assert _same_pixels(flip(transparent_image, False, False, "#123456"), expected)

    def test_rotate_when_360_then_identity(self, quadrant_image):
        assert _same_pixels(rotate(quadrant_image, 360, "#fff"), quadrant_image)


class TestRotate:

    def test_rotate_when_90_then_dimensions_swap(self, quadrant_image):
        assert rotate(quadrant_image, 90, "#fff").size == (30, 40)
        assert rotate(quadrant_image, 270, "#fff").size == (30, 40)
        assert rotate(quadrant_image, 180, "#fff").size == (40, 30)

    def test_rotate_when_90_then_clockwise(self, quadrant_image):
        # top-left (red) moves to top-right after a clockwise quarter turn
        result = rotate(quadrant_image, 90, "#fff")
        assert result.getpixel((result.width - 1, 0)) == (255, 0, 0)

    def test_rotate_when_45_then_bounding_box_size(self):
        image = Image.new("RGB", (100, 100), "red")
        result = rotate(image, 45, "#ffffff")
        assert result.size == (141, 141)
        assert result.getpixel((0, 0)) == (255, 255, 255)
        assert result.getpixel((70, 70)) == (255, 0, 0)

    def test_rotate_when_arbitrary_angle_then_opaque(self, transparent_image):
        assert is_opaque(rotate(transparent_image, 33, "#ff00ff"))


class TestFlip:

    def test_flip_when_horizontal_then_left_right_swapped(self, quadrant_image):
        result = flip(quadrant_image, True, False, "#fff")
        assert result.getpixel((0, 0)) == (0, 255, 0)

    def test_flip_when_vertical_then_top_bottom_swapped(self, quadrant_image):
        result = flip(quadrant_image, False, True, "#fff")
        assert result.getpixel((0, 0)) == (0, 0, 255)


class TestCombine:

    @pytest.mark.parametrize(
        "rotation,horizontal,vertical",
        list(itertools.product([0, 90, 180, 270, 30, 135], [False, True], [False, True])),
    )
    def test_combine_when_any_transform_then_equals_flip_of_rotate(
        self, transparent_image, rotation, horizontal, vertical
    ):
        color = "#336699"
        sequential = flip(rotate(transparent_image, rotation, color), horizontal, vertical, color)
        combined = combine(transparent_image, rotation, horizontal, vertical, color)
        assert _same_pixels(combined, sequential)

    def test_combine_when_chained_operations_then_always_opaque(self, transparent_image):
        result = transparent_image
        for step in range(5):
            result = combine(result, 17 * step, step % 2 == 0, step % 3 == 0, "#ffffff")
        assert is_opaque(result)


class TestCrop:

    def test_clamp_when_square_region_and_portrait_ratio_then_width_narrowed(self):
        clamped = clamp_crop_region(CropRegion(0, 0, 100, 100), (100, 100), 0.8)
        assert clamped.width == pytest.approx(80)
        assert clamped.height == pytest.approx(100)

    def test_clamp_when_region_past_edge_then_shifted_inside(self):
        clamped = clamp_crop_region(CropRegion(90, 90, 40, 50), (100, 100), 0.8)
        assert clamped.x + clamped.width <= 100
        assert clamped.y + clamped.height <= 100
        assert clamped.aspect_ratio == pytest.approx(0.8)

    def test_clamp_when_region_larger_than_image_then_shrunk_keeping_ratio(self):
        clamped = clamp_crop_region(CropRegion(0, 0, 400, 500), (100, 100), 0.8)
        assert clamped.height == pytest.approx(100)
        assert clamped.width == pytest.approx(80)

    def test_clamp_when_ratio_zero_then_raises_invalid_dimension(self):
        with pytest.raises(InvalidDimensionError):
            clamp_crop_region(CropRegion(0, 0, 10, 10), (10, 10), 0)

    def test_crop_to_aspect_when_cropped_then_output_sized_to_region(self, quadrant_factory):
        image = quadrant_factory(200, 200)
        result = crop_to_aspect(image, CropRegion(0, 0, 200, 200), 0.5)
        assert result.size == (100, 200)
        assert is_opaque(result)


class TestDeriveProcessed:

    def _item(self, encode_png, image, **overrides):
        fields = dict(
            id="x",
            source_image=encode_png(image),
            processed_image=b"",
            source_size=image.size,
            target_size=TargetSize(40, 30),
            crop_region=CropRegion.full(*image.size),
        )
        fields.update(overrides)
        return PhotoItem(**fields)

    def test_derive_when_oriented_then_matches_combine(self, encode_png, quadrant_image):
        item = self._item(encode_png, quadrant_image, orientation=Orientation(90, True, False))
        derived = decode_raster(derive_processed(item))
        expected = combine(quadrant_image, 90, True, False, "#ffffff")
        assert _same_pixels(derived, expected)

    def test_derive_when_crop_region_set_then_cropped_before_rotation(self, encode_png, quadrant_image):
        item = self._item(encode_png, quadrant_image, crop_region=CropRegion(0, 0, 20, 15))
        derived = decode_raster(derive_processed(item, Orientation(90)))
        assert derived.size == (15, 20)
        assert set(derived.getdata()) == {(255, 0, 0)}

    def test_derive_when_cutout_then_background_shows_through(self, encode_png, quadrant_image, transparent_image):
        cutout = transparent_image.resize(quadrant_image.size)
        item = self._item(
            encode_png,
            quadrant_image,
            cutout_image=encode_png(cutout),
            background_color="#0000ff",
        )
        derived = decode_raster(derive_processed(item))
        assert derived.getpixel((0, 0)) == (0, 0, 255)
        assert is_opaque(derived)

    def test_derive_when_source_corrupt_then_raises_decode_error(self, quadrant_image):
        item = PhotoItem(
            id="bad",
            source_image=b"garbage",
            processed_image=b"",
            source_size=(10, 10),
            target_size=TargetSize(10, 10),
            crop_region=CropRegion.full(10, 10),
        )
        with pytest.raises(DecodeError):
            derive_processed(item)
