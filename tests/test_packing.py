"""기하 커널 및 전략 베이스 테스트"""
import time

import pytest

from panelcut.errors import ConfigurationError, ExecutionError
from panelcut.models import Panel
from panelcut.packing import (
    Deadline,
    FreeSpace,
    PackingStrategy,
    area,
    footprint,
    is_clear,
    overlaps,
    rebuild_free_spaces,
    split_free_space,
    verify_layout,
)
from panelcut.pieces import expand_pieces
from panelcut.models import Piece


class TestAreaAndOverlap:

    def test_area(self):
        assert area(FreeSpace(10, 20, 30, 40)) == 1200

    def test_overlapping_rectangles(self):
        assert overlaps(FreeSpace(0, 0, 10, 10), FreeSpace(5, 5, 10, 10))

    def test_touching_edges_do_not_overlap(self):
        assert not overlaps(FreeSpace(0, 0, 10, 10), FreeSpace(10, 0, 10, 10))
        assert not overlaps(FreeSpace(0, 0, 10, 10), FreeSpace(0, 10, 10, 10))

    def test_separated_rectangles(self):
        assert not overlaps(FreeSpace(0, 0, 10, 10), FreeSpace(50, 50, 5, 5))

    def test_dict_rectangles(self):
        a = {'x': 0, 'y': 0, 'width': 10, 'height': 10}
        b = {'x': 9, 'y': 9, 'width': 10, 'height': 10}
        assert overlaps(a, b)


class TestSplitFreeSpace:

    def test_guillotine_remainder(self):
        spaces = split_free_space([FreeSpace(0, 0, 150, 100)], FreeSpace(0, 0, 100, 100), kerf=0)
        assert spaces == [FreeSpace(100, 0, 50, 100)]

    def test_four_children_around_center(self):
        spaces = split_free_space([FreeSpace(0, 0, 100, 100)], FreeSpace(40, 40, 20, 20), kerf=0)
        assert set(spaces) == {
            FreeSpace(0, 0, 100, 40),
            FreeSpace(0, 60, 100, 40),
            FreeSpace(0, 0, 40, 100),
            FreeSpace(60, 0, 40, 100),
        }

    def test_slivers_at_or_below_kerf_are_discarded(self):
        spaces = split_free_space([FreeSpace(0, 0, 100, 100)], FreeSpace(0, 0, 97, 50), kerf=3)
        assert spaces == [FreeSpace(0, 50, 100, 50)]

    def test_non_overlapping_spaces_pass_through(self):
        far = FreeSpace(200, 200, 50, 50)
        spaces = split_free_space([far, FreeSpace(0, 0, 100, 100)], FreeSpace(0, 0, 100, 50), kerf=0)
        assert far in spaces
        assert FreeSpace(0, 50, 100, 50) in spaces

    def test_input_list_is_not_modified(self):
        original = [FreeSpace(0, 0, 100, 100)]
        split_free_space(original, FreeSpace(0, 0, 50, 50), kerf=0)
        assert original == [FreeSpace(0, 0, 100, 100)]

    def test_no_free_space_overlaps_used_rect(self):
        used = FreeSpace(30, 20, 40, 50)
        spaces = split_free_space(
            [FreeSpace(0, 0, 100, 100), FreeSpace(20, 10, 80, 30)], used, kerf=0
        )
        assert spaces
        assert all(not overlaps(space, used) for space in spaces)

    def test_contained_children_are_pruned(self):
        spaces = split_free_space(
            [FreeSpace(0, 0, 100, 50), FreeSpace(0, 0, 50, 100)], FreeSpace(40, 40, 20, 20), kerf=0
        )
        assert set(spaces) == {
            FreeSpace(0, 0, 100, 40),
            FreeSpace(60, 0, 40, 50),
            FreeSpace(0, 60, 50, 40),
            FreeSpace(0, 0, 40, 100),
        }

    def test_child_inside_untouched_space_is_pruned(self):
        spaces = split_free_space(
            [FreeSpace(0, 0, 100, 100), FreeSpace(50, 0, 100, 10)], FreeSpace(100, 0, 10, 10), kerf=0
        )
        assert spaces == [FreeSpace(0, 0, 100, 100), FreeSpace(110, 0, 40, 10)]

    def test_repeated_splits_keep_spaces_maximal(self):
        panel = Panel(width=300, height=200)
        placed = [
            {'x': 0, 'y': 0, 'width': 100, 'height': 80},
            {'x': 100, 'y': 0, 'width': 60, 'height': 120},
            {'x': 0, 'y': 80, 'width': 90, 'height': 50},
        ]
        spaces = rebuild_free_spaces(placed, panel, kerf=0)
        for i, a in enumerate(spaces):
            for j, b in enumerate(spaces):
                if i != j:
                    assert not (a.x <= b.x and a.y <= b.y and
                                b.x + b.width <= a.x + a.width and
                                b.y + b.height <= a.y + a.height), f"{b} inside {a}"


class TestKerfFootprint:

    def test_footprint_grows_on_all_sides(self):
        assert footprint(10, 10, 20, 30, 2) == FreeSpace(8, 8, 24, 34)

    def test_neighbour_is_kerf_away(self):
        panel = Panel(width=200, height=100)
        placed = [{'x': 0, 'y': 0, 'width': 50, 'height': 100}]
        spaces = rebuild_free_spaces(placed, panel, kerf=3)
        assert min(space.x for space in spaces) == 53

    def test_is_clear(self):
        others = [{'x': 0, 'y': 0, 'width': 50, 'height': 50}]
        assert is_clear({'x': 53, 'y': 0, 'width': 10, 'height': 10}, others, kerf=3)
        assert not is_clear({'x': 52, 'y': 0, 'width': 10, 'height': 10}, others, kerf=3)


class TestVerifyLayout:

    def test_out_of_bounds_raises(self, panel):
        sheet = {'index': 0, 'pieces': [{'key': 'a#1', 'x': 450, 'y': 0, 'width': 100, 'height': 10}]}
        with pytest.raises(ExecutionError):
            verify_layout([sheet], panel)

    def test_overlap_raises(self, panel):
        sheet = {'index': 0, 'pieces': [
            {'key': 'a#1', 'x': 0, 'y': 0, 'width': 100, 'height': 100},
            {'key': 'b#1', 'x': 50, 'y': 50, 'width': 100, 'height': 100},
        ]}
        with pytest.raises(ExecutionError):
            verify_layout([sheet], panel)

    def test_valid_layout_passes(self, panel):
        sheet = {'index': 0, 'pieces': [
            {'key': 'a#1', 'x': 0, 'y': 0, 'width': 100, 'height': 100},
            {'key': 'b#1', 'x': 100, 'y': 0, 'width': 100, 'height': 100},
        ]}
        verify_layout([sheet], panel)


class TestDeadline:

    def test_no_timeout_never_expires(self):
        assert not Deadline(None).expired()

    def test_short_timeout_expires(self):
        deadline = Deadline(1)
        time.sleep(0.01)
        assert deadline.expired()

    def test_long_timeout_not_expired(self):
        assert not Deadline(60_000).expired()


class _BrokenPacker(PackingStrategy):
    name = 'broken'

    def pack(self, pieces, context):
        raise RuntimeError("boom")


class _OverlappingPacker(PackingStrategy):
    name = 'overlapping'

    def pack(self, pieces, context):
        placements = [
            {'key': p['key'], 'id': p['id'], 'x': 0, 'y': 0, 'width': p['width'],
             'height': p['height'], 'rotated': False, 'sheet': 0, 'label': None, 'area': p['area']}
            for p in pieces
        ]
        return [{'index': 0, 'pieces': placements, 'free_spaces': []}], []


class TestStrategyContract:

    def test_missing_panel_raises_configuration_error(self, settings):
        units = expand_pieces([Piece(id='a', width=10, height=10)])
        with pytest.raises(ConfigurationError):
            _BrokenPacker().execute(units, [], settings)

    def test_internal_fault_becomes_execution_error(self, panel, settings):
        units = expand_pieces([Piece(id='a', width=10, height=10)])
        with pytest.raises(ExecutionError, match="boom"):
            _BrokenPacker().execute(units, [panel], settings)

    def test_corrupt_layout_is_never_returned(self, panel, settings):
        units = expand_pieces([Piece(id='a', width=10, height=10, quantity=2)])
        with pytest.raises(ExecutionError):
            _OverlappingPacker().execute(units, [panel], settings)
