"""
Warehouse Cell Interface - Task submission API of a storage cell.

A cell owns one storage area, a store pair and a retrieve pair of transport
units, and the charging station serving each pair. Callers submit store or
retrieve requests and receive a typed TaskResult; errors are never raised
across this boundary.
"""
from abc import ABC, abstractmethod
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from interfaces.charging_station_interface import ChargingStationInfo
from interfaces.task_interface import TaskRequest, TaskResult
from interfaces.transport_unit_interface import UnitStatus
from interfaces.warehouse_types import Position
from warehouse.box import Box


@dataclass(frozen=True)
class CellStatus:
    """Snapshot of a cell for status displays."""
    cell_id: str
    stored_count: int
    free_count: int
    contents: List[str] = field(default_factory=list)
    units: List[UnitStatus] = field(default_factory=list)
    stations: List[ChargingStationInfo] = field(default_factory=list)


class IWarehouseCell(ABC):
    """
    Interface for a storage cell.

    **Thread Safety**: Submissions may arrive from several threads. Tasks that
    share a unit pair run one at a time; slot allocation is atomic.
    """

    @property
    @abstractmethod
    def cell_id(self) -> str:
        """Cell identifier."""
        pass

    @abstractmethod
    def submit_store(self, box: Box, slot: Optional[Position] = None) -> TaskResult:
        """
        Store a box.

        Args:
            box: Box to store
            slot: Requested slot; the first empty slot is used when omitted

        Returns:
            TaskResult: COMPLETED with the slot, or FAILED with a reason
        """
        pass

    @abstractmethod
    def submit_retrieve(self, box_id: str) -> TaskResult:
        """
        Retrieve a stored box and deliver it to the dropoff point.

        Args:
            box_id: Identifier of the stored box

        Returns:
            TaskResult: COMPLETED, or FAILED (NOT_FOUND leaves storage unchanged)
        """
        pass

    @abstractmethod
    def get_status(self) -> CellStatus:
        """
        Get a snapshot of storage, units and stations.

        Returns:
            CellStatus: Current cell information
        """
        pass


class ICellDispatcher(ABC):
    """
    Interface for running requests against several cells concurrently.

    Requests for the same cell still serialize inside that cell.
    """

    @abstractmethod
    def submit(self, request: TaskRequest) -> "Future[TaskResult]":
        """
        Queue a request on a worker thread.

        Args:
            request: Request naming its target cell

        Returns:
            Future[TaskResult]: Resolves to the task outcome
        """
        pass

    @abstractmethod
    def run_all(self, requests: List[TaskRequest]) -> List[TaskResult]:
        """
        Run requests concurrently and wait for all of them.

        Returns:
            List[TaskResult]: Outcomes in request order
        """
        pass

    @abstractmethod
    def get_cells(self) -> Dict[str, IWarehouseCell]:
        """Cells known to the dispatcher, keyed by id."""
        pass

    @abstractmethod
    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting requests and release worker threads."""
        pass
