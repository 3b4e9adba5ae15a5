"""
Unit Tests for size presets and aspect-locked resize.
"""

import pytest

from photo_sheet.core.errors import InvalidDimensionError
from photo_sheet.core.models import CustomSize, SizePreset, TargetSize, Unit, resize_target, size_for_preset


class TestSizePreset:

    def test_passport_when_applied_then_40_by_50(self):
        assert size_for_preset(SizePreset.PASSPORT, (1000, 1000)) == TargetSize(40, 50)

    def test_stamp_when_applied_then_22_by_27(self):
        assert size_for_preset(SizePreset.STAMP, (10, 10)) == TargetSize(22, 27)

    def test_original_when_applied_then_pixels_at_300dpi(self):
        target = size_for_preset(SizePreset.ORIGINAL, (600, 300))
        assert target.width_mm == pytest.approx(50.8)
        assert target.height_mm == pytest.approx(25.4)

    def test_metadata_when_read_then_each_member_has_label_and_icon(self):
        for preset in SizePreset:
            assert preset.label
            assert preset.icon
        assert not SizePreset.ORIGINAL.is_fixed
        assert SizePreset.PASSPORT.is_fixed


class TestCustomSize:

    def test_to_target_when_inches_then_converted_to_mm(self):
        assert CustomSize(2, 2, Unit.INCH).to_target() == TargetSize(50.8, 50.8)

    def test_init_when_negative_then_raises_invalid_dimension(self):
        with pytest.raises(InvalidDimensionError):
            CustomSize(-1, 10)


class TestResizeTarget:

    def test_resize_when_aspect_locked_and_width_80_then_height_100(self):
        result = resize_target(TargetSize(40, 50), width=80, lock_aspect=True)
        assert result == TargetSize(80, 100)

    def test_resize_when_unlocked_and_width_80_then_height_unchanged(self):
        result = resize_target(TargetSize(40, 50), width=80, lock_aspect=False)
        assert result == TargetSize(80, 50)

    def test_resize_when_locked_and_height_given_then_width_follows(self):
        result = resize_target(TargetSize(40, 50), height=25)
        assert result == TargetSize(20, 25)

    def test_resize_when_ratio_not_exact_then_rounded_to_two_places(self):
        result = resize_target(TargetSize(22, 27), width=30)
        assert result.height_mm == 36.82

    def test_resize_when_inches_then_stored_in_mm(self):
        result = resize_target(TargetSize(50.8, 50.8), width=3, unit=Unit.INCH)
        assert result.width_mm == pytest.approx(76.2)
        assert result.height_mm == pytest.approx(76.2)

    def test_resize_when_zero_then_raises_invalid_dimension(self):
        with pytest.raises(InvalidDimensionError):
            resize_target(TargetSize(40, 50), width=0)
