"""
Storage Area Interface - Fixed-size grid of slots holding at most one box each.

This interface defines the contract for slot lookup, allocation and release:
- Row-major search for the first empty slot
- Atomic reservation of a slot for a box id (find + claim under one lock)
- Store and retrieve against explicit grid coordinates
- Read-only views for status displays

Box id uniqueness is enforced at the reservation boundary; store() trusts the
position already recorded on the box.
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from interfaces.warehouse_types import Position
from warehouse.box import Box


class IStorageArea(ABC):
    """
    Storage area interface.

    **Thread Safety**: All methods are thread-safe. Reservation methods are
    atomic with respect to each other and to store()/retrieve().
    """

    @property
    @abstractmethod
    def rows(self) -> int:
        """Number of grid rows."""
        pass

    @property
    @abstractmethod
    def cols(self) -> int:
        """Number of grid columns."""
        pass

    @abstractmethod
    def find_empty_slot(self) -> Optional[Position]:
        """
        Find the first empty slot in row-major order.

        Reserved slots are not empty.

        Returns:
            Optional[Position]: Lowest row, then lowest column; None if full
        """
        pass

    @abstractmethod
    def find_box_by_id(self, box_id: str) -> Optional[Position]:
        """
        Find where a box is stored.

        Args:
            box_id: Box identifier

        Returns:
            Optional[Position]: Slot holding the box, None if not stored
        """
        pass

    @abstractmethod
    def get_box_at(self, row: int, col: int) -> Optional[Box]:
        """
        Get the box stored at a slot without removing it.

        Raises:
            OutOfBoundsError: If the slot lies outside the grid
        """
        pass

    @abstractmethod
    def reserve_empty_slot(self, box_id: str) -> Position:
        """
        Atomically find the first empty slot and claim it for a box.

        Args:
            box_id: Box the slot is claimed for

        Returns:
            Position: Claimed slot

        Raises:
            DuplicateBoxError: If the id is already stored or reserved
            StorageFullError: If no empty slot is left
        """
        pass

    @abstractmethod
    def reserve_slot(self, position: Position, box_id: str) -> Position:
        """
        Claim a caller-chosen slot for a box.

        Args:
            position: Requested slot
            box_id: Box the slot is claimed for

        Returns:
            Position: Claimed slot

        Raises:
            DuplicateBoxError: If the id is already stored or reserved
            OutOfBoundsError: If the slot lies outside the grid
            SlotConflictError: If the slot is occupied or reserved
        """
        pass

    @abstractmethod
    def release_reservation(self, position: Position, box_id: str) -> bool:
        """
        Release a claim that never became a store.

        Returns:
            bool: True if a matching reservation was released
        """
        pass

    @abstractmethod
    def store(self, box: Box) -> None:
        """
        Register a box in the slot named by box.position.

        Raises:
            OutOfBoundsError: If box.position is missing or outside the grid
            SlotConflictError: If the slot is occupied or reserved for another box
        """
        pass

    @abstractmethod
    def retrieve(self, row: int, col: int) -> Box:
        """
        Remove and return the box at a slot.

        The box keeps its recorded position; the caller reassigns it.

        Raises:
            OutOfBoundsError: If the slot lies outside the grid
            EmptyCellError: If the slot holds no box
        """
        pass

    @abstractmethod
    def list_boxes(self) -> List[Box]:
        """
        Get all stored boxes in row-major order.

        Returns:
            List[Box]: Stored boxes
        """
        pass

    @abstractmethod
    def describe_contents(self) -> List[str]:
        """
        Describe every slot, one line per cell.

        Returns:
            List[str]: "Cell [r,c] is empty" or the stored box description
        """
        pass

    @property
    @abstractmethod
    def stored_count(self) -> int:
        """Number of occupied slots."""
        pass

    @property
    @abstractmethod
    def free_count(self) -> int:
        """Number of slots neither occupied nor reserved."""
        pass
