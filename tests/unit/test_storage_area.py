"""
Tests for StorageArea implementation.

Tests focus on:
- Row-major slot search
- Store/retrieve round trip and error cases
- Atomic reservation (duplicates, conflicts, full storage, release)
- Read-only views
"""
import pytest

from interfaces.warehouse_types import Position
from interfaces.cell_errors import (
    OutOfBoundsError, SlotConflictError, EmptyCellError, DuplicateBoxError,
    StorageFullError, InvalidArgumentError
)
from warehouse.box import Box
from warehouse.impl.storage_area_impl import StorageAreaImpl


def store_at(area, box_id, row, col):
    box = Box(box_id, 1.0, f"content {box_id}", Position(row, col))
    area.store(box)
    return box


class TestStorageAreaImpl:
    """Test cases for StorageAreaImpl."""

    @pytest.fixture
    def area(self):
        return StorageAreaImpl(5, 5)

    def test_first_empty_slot_is_origin(self, area):
        assert area.find_empty_slot() == Position(0, 0)

    def test_empty_slot_search_is_row_major(self, area):
        for col in range(5):
            store_at(area, f"B{col}", 0, col)
        assert area.find_empty_slot() == Position(1, 0)

    def test_store_retrieve_round_trip_returns_same_box(self, area):
        box = store_at(area, "B1", 2, 3)
        assert area.find_box_by_id("B1") == Position(2, 3)

        retrieved = area.retrieve(2, 3)

        assert retrieved is box
        assert retrieved.position == Position(2, 3)
        assert area.find_box_by_id("B1") is None
        assert area.get_box_at(2, 3) is None

    def test_store_without_position_is_out_of_bounds(self, area):
        with pytest.raises(OutOfBoundsError):
            area.store(Box("B1", 1.0, "x"))

    def test_store_outside_grid_is_out_of_bounds(self, area):
        with pytest.raises(OutOfBoundsError):
            area.store(Box("B1", 1.0, "x", Position(5, 0)))
        with pytest.raises(OutOfBoundsError):
            area.store(Box("B2", 1.0, "x", Position(-1, -1)))

    def test_store_into_occupied_slot_conflicts(self, area):
        first = store_at(area, "B1", 1, 1)
        with pytest.raises(SlotConflictError):
            store_at(area, "B2", 1, 1)
        assert area.get_box_at(1, 1) is first

    def test_retrieve_empty_slot(self, area):
        with pytest.raises(EmptyCellError):
            area.retrieve(0, 0)

    def test_retrieve_outside_grid(self, area):
        with pytest.raises(OutOfBoundsError):
            area.retrieve(9, 9)

    def test_get_box_at_outside_grid(self, area):
        with pytest.raises(OutOfBoundsError):
            area.get_box_at(-1, 0)

    def test_reserved_slot_is_not_empty(self, area):
        assert area.reserve_empty_slot("B1") == Position(0, 0)
        assert area.reserve_empty_slot("B2") == Position(0, 1)
        assert area.find_empty_slot() == Position(0, 2)

    def test_reserve_duplicate_of_reserved_id(self, area):
        area.reserve_empty_slot("B1")
        with pytest.raises(DuplicateBoxError):
            area.reserve_empty_slot("B1")

    def test_reserve_duplicate_of_stored_id(self, area):
        store_at(area, "B1", 4, 4)
        with pytest.raises(DuplicateBoxError):
            area.reserve_slot(Position(0, 0), "B1")

    def test_reserve_slot_conflicts(self, area):
        store_at(area, "B1", 0, 0)
        area.reserve_slot(Position(0, 1), "B2")
        with pytest.raises(SlotConflictError):
            area.reserve_slot(Position(0, 0), "B3")
        with pytest.raises(SlotConflictError):
            area.reserve_slot(Position(0, 1), "B3")

    def test_reserve_slot_outside_grid(self, area):
        with pytest.raises(OutOfBoundsError):
            area.reserve_slot(Position(5, 5), "B1")

    def test_store_honours_reservation(self, area):
        area.reserve_slot(Position(3, 3), "B1")
        with pytest.raises(SlotConflictError):
            area.store(Box("B2", 1.0, "x", Position(3, 3)))

        box = Box("B1", 1.0, "x", Position(3, 3))
        area.store(box)
        assert area.get_box_at(3, 3) is box

    def test_full_storage(self):
        area = StorageAreaImpl(2, 2)
        for i in range(4):
            area.reserve_empty_slot(f"B{i}")
        assert area.find_empty_slot() is None
        with pytest.raises(StorageFullError):
            area.reserve_empty_slot("B9")

    def test_release_reservation(self, area):
        position = area.reserve_empty_slot("B1")
        assert area.release_reservation(position, "B2") is False
        assert area.release_reservation(position, "B1") is True
        assert area.release_reservation(position, "B1") is False
        assert area.find_empty_slot() == position

    def test_counts_and_listing(self, area):
        b1 = store_at(area, "B1", 1, 0)
        b0 = store_at(area, "B0", 0, 4)
        area.reserve_empty_slot("B2")

        assert area.stored_count == 2
        assert area.free_count == 22
        assert area.list_boxes() == [b0, b1]

    def test_describe_contents(self, area):
        store_at(area, "B1", 0, 0)
        area.reserve_slot(Position(0, 1), "B2")
        lines = area.describe_contents()

        assert len(lines) == 25
        assert lines[0] == "Cell [0,0]: Box ID: B1, Weight: 1 kg, Content: content B1"
        assert lines[1] == "Cell [0,1] is reserved for box B2"
        assert lines[2] == "Cell [0,2] is empty"

    def test_invalid_dimensions(self):
        with pytest.raises(InvalidArgumentError):
            StorageAreaImpl(0, 5)
