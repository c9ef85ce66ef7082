"""
Warehouse implementation modules.

Contains concrete implementations of the storage cell interfaces:
- WarehouseCellImpl: composition root for one cell
- CellDispatcherImpl: parallel request execution across cells
"""

from .warehouse_cell_impl import WarehouseCellImpl
from .cell_dispatcher_impl import CellDispatcherImpl

__all__ = [
    'WarehouseCellImpl',
    'CellDispatcherImpl'
]
