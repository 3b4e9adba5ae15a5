"""
Unit Tests for manual arrangement (align / distribute) and override
resolution.
"""

import pytest

from photo_sheet.core.models import (
    Alignment,
    CropRegion,
    Distribution,
    LayoutSettings,
    PhotoItem,
    PositionOverride,
    TargetSize,
)
from photo_sheet.layout.arrange import align, distribute, resolve_placements
from photo_sheet.layout.models import Placement
from photo_sheet.layout.packer import pack_items


def _item(item_id, width=40, height=50, position=None):
    return PhotoItem(
        id=item_id,
        source_image=b"s",
        processed_image=b"p",
        source_size=(10, 10),
        target_size=TargetSize(width, height),
        crop_region=CropRegion.full(10, 10),
        position=position,
    )


class TestResolvePlacements:

    def test_resolve_when_no_overrides_then_packed_placements(self):
        items = [_item("a"), _item("b")]
        packed = pack_items(items, LayoutSettings(gap_mm=2))
        assert resolve_placements(items, packed) == packed.placements

    def test_resolve_when_override_then_position_replaced_page_kept(self):
        items = [_item("a"), _item("b", position=PositionOverride(100, 120))]
        packed = pack_items(items, LayoutSettings(gap_mm=2))
        resolved = resolve_placements(items, packed)
        assert resolved[1] == Placement(100, 120, 0)
        assert resolved[0] == packed.placements[0]

    def test_resolve_when_lengths_differ_then_raises(self):
        packed = pack_items([_item("a")], LayoutSettings())
        with pytest.raises(ValueError):
            resolve_placements([], packed)


class TestAlign:

    def _layout(self):
        items = [_item("a", 40, 50), _item("b", 20, 30), _item("c", 30, 10)]
        placements = [Placement(10, 10, 0), Placement(60, 40, 0), Placement(100, 5, 0)]
        return items, placements

    def test_align_when_left_then_all_at_min_x(self):
        items, placements = self._layout()
        overrides = align(items, placements, ["a", "b", "c"], Alignment.LEFT)
        assert {o.x_mm for o in overrides.values()} == {10}
        assert overrides["b"].y_mm == 40

    def test_align_when_right_then_right_edges_match(self):
        items, placements = self._layout()
        overrides = align(items, placements, ["a", "b", "c"], Alignment.RIGHT)
        assert overrides["a"].x_mm + 40 == 130
        assert overrides["b"].x_mm + 20 == 130
        assert overrides["c"].x_mm + 30 == 130

    def test_align_when_center_then_centres_on_selection_midline(self):
        items, placements = self._layout()
        overrides = align(items, placements, ["a", "b", "c"], Alignment.CENTER)
        assert overrides["a"].x_mm + 20 == pytest.approx(70)
        assert overrides["b"].x_mm + 10 == pytest.approx(70)

    def test_align_when_top_then_all_at_min_y_and_x_kept(self):
        items, placements = self._layout()
        overrides = align(items, placements, ["a", "b"], Alignment.TOP)
        assert overrides["a"] == PositionOverride(10, 10)
        assert overrides["b"] == PositionOverride(60, 10)

    def test_align_when_single_selection_then_no_change(self):
        items, placements = self._layout()
        assert align(items, placements, ["a"], Alignment.LEFT) == {}


class TestDistribute:

    def _layout(self):
        items = [_item("a", 20, 20), _item("b", 20, 40), _item("c", 20, 10)]
        placements = [Placement(100, 10, 0), Placement(10, 30, 0), Placement(40, 0, 0)]
        return items, placements

    def test_distribute_when_horizontal_top_then_even_steps_and_top_aligned(self):
        items, placements = self._layout()
        overrides = distribute(items, placements, ["a", "b", "c"], Distribution.HORIZONTAL_TOP)
        # sorted by x: b (10), c (40), a (100) -> step 45
        assert overrides["b"] == PositionOverride(10, 0)
        assert overrides["c"] == PositionOverride(55, 0)
        assert overrides["a"] == PositionOverride(100, 0)

    def test_distribute_when_horizontal_bottom_then_bottoms_aligned(self):
        items, placements = self._layout()
        overrides = distribute(items, placements, ["a", "b", "c"], Distribution.HORIZONTAL_BOTTOM)
        assert overrides["a"].y_mm + 20 == 70
        assert overrides["b"].y_mm + 40 == 70
        assert overrides["c"].y_mm + 10 == 70

    def test_distribute_when_vertical_center_then_even_y_and_centred_x(self):
        items, placements = self._layout()
        overrides = distribute(items, placements, ["a", "b", "c"], Distribution.VERTICAL_CENTER)
        # sorted by y: c (0), a (10), b (30) -> step 15
        assert overrides["c"].y_mm == 0
        assert overrides["a"].y_mm == 15
        assert overrides["b"].y_mm == 30
        assert {o.x_mm + 10 for o in overrides.values()} == {65}

    def test_distribute_when_two_selected_then_no_change(self):
        items, placements = self._layout()
        assert distribute(items, placements, ["a", "b"], Distribution.HORIZONTAL_TOP) == {}

    def test_distribute_when_item_unplaced_then_ignored(self):
        items, placements = self._layout()
        placements[2] = None
        assert distribute(items, placements, ["a", "b", "c"], Distribution.HORIZONTAL_TOP) == {}
