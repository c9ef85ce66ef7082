"""
Storage Area Implementation - numpy occupancy grid with atomic slot reservation.

The grid keeps one status code per slot (empty, reserved, occupied) so that
row-major searches are a single vectorised scan. Stored boxes and pending
reservations are tracked in dictionaries keyed by Position.

Threading Model:
- One RLock per storage area; no global lock
- reserve_empty_slot() performs find-first-empty and claim under the same lock,
  so two concurrent stores can never be handed the same slot
"""

import logging
import threading
from typing import Dict, List, Optional

import numpy as np

from interfaces.storage_area_interface import IStorageArea
from interfaces.warehouse_types import Position
from interfaces.cell_errors import (
    OutOfBoundsError, SlotConflictError, EmptyCellError,
    DuplicateBoxError, StorageFullError, InvalidArgumentError
)
from warehouse.box import Box

# Slot status codes
EMPTY = 0
RESERVED = 1
OCCUPIED = 2


class StorageAreaImpl(IStorageArea):
    """Thread-safe rows x cols storage grid."""

    def __init__(self, rows: int = 5, cols: int = 5, name: str = "storage"):
        if rows <= 0 or cols <= 0:
            raise InvalidArgumentError(f"Storage area needs positive dimensions, got {rows}x{cols}")
        self._rows = rows
        self._cols = cols
        self._grid = np.zeros((rows, cols), dtype=np.int8)
        self._boxes: Dict[Position, Box] = {}
        self._reservations: Dict[Position, str] = {}
        self._lock = threading.RLock()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}[{name}]")
        self.logger.info(f"Storage area created with {rows}x{cols} slots")

    @property
    def rows(self) -> int:
        return self._rows

    @property
    def cols(self) -> int:
        return self._cols

    def _in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self._rows and 0 <= col < self._cols

    def _check_bounds(self, row: int, col: int) -> None:
        if not self._in_bounds(row, col):
            raise OutOfBoundsError(
                f"Slot [{row},{col}] is outside the {self._rows}x{self._cols} storage area"
            )

    def _id_in_use(self, box_id: str) -> bool:
        if box_id in self._reservations.values():
            return True
        return any(box.id == box_id for box in self._boxes.values())

    # --- Lookup ---

    def find_empty_slot(self) -> Optional[Position]:
        with self._lock:
            return self._first_empty()

    def _first_empty(self) -> Optional[Position]:
        empty = np.argwhere(self._grid == EMPTY)  # Row-major order
        if len(empty) == 0:
            return None
        row, col = empty[0]
        return Position(int(row), int(col))

    def find_box_by_id(self, box_id: str) -> Optional[Position]:
        with self._lock:
            for position in sorted(self._boxes):
                if self._boxes[position].id == box_id:
                    return position
            return None

    def get_box_at(self, row: int, col: int) -> Optional[Box]:
        with self._lock:
            self._check_bounds(row, col)
            return self._boxes.get(Position(row, col))

    # --- Allocation ---

    def reserve_empty_slot(self, box_id: str) -> Position:
        with self._lock:
            if self._id_in_use(box_id):
                raise DuplicateBoxError(f"Box ID {box_id} already exists in storage")
            position = self._first_empty()
            if position is None:
                raise StorageFullError("Storage is full")
            self._claim(position, box_id)
            return position

    def reserve_slot(self, position: Position, box_id: str) -> Position:
        with self._lock:
            if self._id_in_use(box_id):
                raise DuplicateBoxError(f"Box ID {box_id} already exists in storage")
            self._check_bounds(position.row, position.col)
            status = self._grid[position.row, position.col]
            if status == OCCUPIED:
                raise SlotConflictError(f"Slot {position} is already occupied")
            if status == RESERVED:
                raise SlotConflictError(f"Slot {position} is reserved for box {self._reservations[position]}")
            self._claim(position, box_id)
            return position

    def _claim(self, position: Position, box_id: str) -> None:
        self._grid[position.row, position.col] = RESERVED
        self._reservations[position] = box_id
        self.logger.debug(f"Reserved slot {position} for box {box_id}")

    def release_reservation(self, position: Position, box_id: str) -> bool:
        with self._lock:
            if self._reservations.get(position) != box_id:
                return False
            del self._reservations[position]
            self._grid[position.row, position.col] = EMPTY
            self.logger.debug(f"Released reservation of slot {position} for box {box_id}")
            return True

    # --- Store / retrieve ---

    def store(self, box: Box) -> None:
        with self._lock:
            position = box.position
            if position is None:
                raise OutOfBoundsError(f"Box {box.id} has no storage position")
            self._check_bounds(position.row, position.col)
            status = self._grid[position.row, position.col]
            if status == OCCUPIED:
                raise SlotConflictError(f"Slot {position} is already occupied")
            if status == RESERVED and self._reservations[position] != box.id:
                raise SlotConflictError(f"Slot {position} is reserved for box {self._reservations[position]}")

            self._reservations.pop(position, None)
            self._boxes[position] = box
            self._grid[position.row, position.col] = OCCUPIED
            self.logger.info(f"Stored box {box.id} at {position}")

    def retrieve(self, row: int, col: int) -> Box:
        with self._lock:
            self._check_bounds(row, col)
            position = Position(row, col)
            box = self._boxes.pop(position, None)
            if box is None:
                raise EmptyCellError(f"Slot {position} is empty")
            self._grid[row, col] = EMPTY
            self.logger.info(f"Retrieved box {box.id} from {position}")
            return box

    # --- Views ---

    def list_boxes(self) -> List[Box]:
        with self._lock:
            return [self._boxes[position] for position in sorted(self._boxes)]

    def describe_contents(self) -> List[str]:
        lines = []
        with self._lock:
            for row in range(self._rows):
                for col in range(self._cols):
                    position = Position(row, col)
                    box = self._boxes.get(position)
                    if box is not None:
                        lines.append(f"Cell {position}: {box}")
                    elif position in self._reservations:
                        lines.append(f"Cell {position} is reserved for box {self._reservations[position]}")
                    else:
                        lines.append(f"Cell {position} is empty")
        return lines

    @property
    def stored_count(self) -> int:
        with self._lock:
            return int(np.count_nonzero(self._grid == OCCUPIED))

    @property
    def free_count(self) -> int:
        with self._lock:
            return int(np.count_nonzero(self._grid == EMPTY))
