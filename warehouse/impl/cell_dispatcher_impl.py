"""
Cell Dispatcher Implementation - Parallel request execution across storage cells.

Requests are handed to a ThreadPoolExecutor. Independent cells make progress
in parallel; requests aimed at the same cell serialize on that cell's pair
locks, and requests sharing a storage area rely on its atomic reservation.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, Future
from typing import Dict, List, Optional

from interfaces.warehouse_cell_interface import ICellDispatcher, IWarehouseCell
from interfaces.task_interface import TaskRequest, TaskResult, TaskType
from interfaces.configuration_interface import IBusinessConfigurationProvider
from interfaces.cell_errors import InvalidArgumentError, StateViolationError


class CellDispatcherImpl(ICellDispatcher):
    """Runs cell requests on a bounded worker pool."""

    def __init__(self, cells: List[IWarehouseCell], max_workers: Optional[int] = None,
                 config_provider: Optional[IBusinessConfigurationProvider] = None):
        """
        Initialize the dispatcher.

        Args:
            cells: Cells that requests may target
            max_workers: Worker threads; defaults to task.max_concurrent_tasks
            config_provider: Configuration provider used when max_workers is omitted
        """
        if not cells:
            raise InvalidArgumentError("Dispatcher needs at least one cell")
        self._cells: Dict[str, IWarehouseCell] = {cell.cell_id: cell for cell in cells}
        if max_workers is None:
            max_workers = config_provider.get_task_config().max_concurrent_tasks if config_provider else 4
        self.max_workers = max_workers
        self._lock = threading.RLock()
        self._closed = False
        self._thread_pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="CellWorker")
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.logger.info(f"Dispatcher started with {max_workers} workers for cells {sorted(self._cells)}")

    def get_cells(self) -> Dict[str, IWarehouseCell]:
        return dict(self._cells)

    def _resolve_cell(self, request: TaskRequest) -> IWarehouseCell:
        if request.cell_id is None:
            if len(self._cells) == 1:
                return next(iter(self._cells.values()))
            raise InvalidArgumentError("Request must name a cell when several cells are configured")
        cell = self._cells.get(request.cell_id)
        if cell is None:
            raise InvalidArgumentError(f"Unknown cell: {request.cell_id}")
        return cell

    def submit(self, request: TaskRequest) -> "Future[TaskResult]":
        cell = self._resolve_cell(request)
        with self._lock:
            if self._closed:
                raise StateViolationError("Dispatcher has been shut down")
            return self._thread_pool.submit(self._execute, cell, request)

    def _execute(self, cell: IWarehouseCell, request: TaskRequest) -> TaskResult:
        if request.task_type == TaskType.STORE:
            return cell.submit_store(request.box, request.slot)
        return cell.submit_retrieve(request.box_id)

    def run_all(self, requests: List[TaskRequest]) -> List[TaskResult]:
        futures = [self.submit(request) for request in requests]
        results = [future.result() for future in futures]
        completed = sum(1 for result in results if result.succeeded)
        self.logger.info(f"Batch finished: {completed}/{len(results)} tasks completed")
        return results

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._thread_pool.shutdown(wait=wait)
        self.logger.info("Dispatcher shut down")
