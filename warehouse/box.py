from typing import Optional

from interfaces.warehouse_types import Position


class Box:
    """Represents a payload unit moved between pickup, storage and dropoff."""

    def __init__(self, box_id: str, weight: float, content: str,
                 position: Optional[Position] = None):
        self.id = box_id
        self.weight = float(weight)
        self.content = content
        self.position = position  # Storage slot while stored, None until allocated

    def assign_position(self, position: Optional[Position]) -> None:
        """Replace the recorded storage position."""
        self.position = position

    def __repr__(self):
        return (f"Box(id={self.id!r}, weight={self.weight!r}, "
                f"content={self.content!r}, position={self.position})")

    def __str__(self):
        return f"Box ID: {self.id}, Weight: {self.weight:g} kg, Content: {self.content}"

    def __eq__(self, other):
        if not isinstance(other, Box):
            return False
        return self.id == other.id

    def __hash__(self):
        return hash(self.id)
