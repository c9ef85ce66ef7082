"""
Warehouse Types - Core value types shared by every storage cell component.

Position is an immutable grid coordinate. A unit's or box's position is always
replaced wholesale, never mutated in place.
"""
from dataclasses import dataclass


@dataclass(frozen=True, order=True)
class Position:
    """Grid coordinate (row, col). Orders row-major."""
    row: int
    col: int

    def __str__(self) -> str:
        return f"[{self.row},{self.col}]"

    def to_dict(self) -> dict:
        return {"row": self.row, "col": self.col}

    @classmethod
    def from_sequence(cls, values) -> 'Position':
        """
        Build a position from a two-element sequence such as [row, col].

        Raises:
            ValueError: If the sequence does not hold exactly two integers
        """
        if values is None or len(values) != 2:
            raise ValueError(f"Position needs exactly two coordinates, got {values!r}")
        return cls(int(values[0]), int(values[1]))
