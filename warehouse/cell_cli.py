#!/usr/bin/env python3
"""
Storage Cell CLI

Runs store and retrieve requests against a storage cell and prints the
outcome of each task, the event counters and the final cell status:
- demo: scripted run (stores, a duplicate id, a retrieval, an unknown id)
- run: execute a batch of requests from a YAML or JSON file

Usage examples:
  python -m warehouse.cell_cli demo
  python -m warehouse.cell_cli demo --store-battery 15
  python -m warehouse.cell_cli --config cell.yaml run --requests requests.yaml
  python -m warehouse.cell_cli run --requests requests.json --parallel

Requests file layout:
  requests:
    - {action: store, box_id: B1, weight: "12.5", content: Bolts, slot: [0, 2]}
    - {action: retrieve, box_id: B1}
"""
import sys
import json
import argparse
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from interfaces.configuration_interface import ConfigurationError
from interfaces.cell_errors import WarehouseCellError, InvalidArgumentError
from interfaces.task_interface import TaskRequest, TaskResult, TaskType
from interfaces.warehouse_cell_interface import IWarehouseCell
from interfaces.warehouse_types import Position
from config.configuration_provider import ConfigurationProvider
from events.event_counters import CounterSnapshot
from events.sink_factory import build_event_pipeline
from utils.logging_setup import configure_logging
from warehouse.input_validation import build_box
from warehouse.impl.cell_dispatcher_impl import CellDispatcherImpl
from warehouse.impl.warehouse_cell_impl import WarehouseCellImpl

logger = logging.getLogger(__name__)

DEMO_BOXES = [
    ("B100", "12.5", "Bolts"),
    ("B101", "4", "Cables"),
    ("B102", "30.25", "Motor parts"),
]


def load_requests(path: str) -> List[Dict[str, Any]]:
    """
    Read request entries from a YAML or JSON file.

    Accepts either a top-level list or a mapping with a "requests" list.

    Raises:
        InvalidArgumentError: If the file is missing or has the wrong shape
    """
    file_path = Path(path)
    if not file_path.exists():
        raise InvalidArgumentError(f"Requests file not found: {path}")
    with open(file_path, "r", encoding="utf-8") as f:
        if file_path.suffix.lower() == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f)

    if isinstance(data, dict):
        data = data.get("requests")
    if not isinstance(data, list):
        raise InvalidArgumentError(f"Requests file {path} must contain a list of requests")
    return data


def build_request(entry: Dict[str, Any]) -> TaskRequest:
    """
    Turn one request entry into a TaskRequest, validating store input.

    Raises:
        InvalidArgumentError: If the entry is malformed
    """
    if not isinstance(entry, dict):
        raise InvalidArgumentError(f"Request must be a mapping, got {entry!r}")
    action = str(entry.get("action", "")).strip().lower()
    cell_id = entry.get("cell")

    if action == TaskType.STORE.value:
        box = build_box(entry.get("box_id"), entry.get("weight"), entry.get("content", ""))
        slot = None
        if entry.get("slot") is not None:
            try:
                slot = Position.from_sequence(entry["slot"])
            except (TypeError, ValueError) as e:
                raise InvalidArgumentError(f"Invalid slot for box {box.id}: {e}")
        return TaskRequest(TaskType.STORE, cell_id=cell_id, box=box, slot=slot)

    if action == TaskType.RETRIEVE.value:
        box_id = entry.get("box_id")
        if box_id is None or not str(box_id).strip():
            raise InvalidArgumentError("Retrieve request needs a box_id")
        return TaskRequest(TaskType.RETRIEVE, cell_id=cell_id, box_id=str(box_id).strip())

    raise InvalidArgumentError(f"Unknown action {entry.get('action')!r}, expected store or retrieve")


def run_request(cell: IWarehouseCell, request: TaskRequest) -> TaskResult:
    if request.task_type == TaskType.STORE:
        return cell.submit_store(request.box, request.slot)
    return cell.submit_retrieve(request.box_id)


def print_result(result: TaskResult) -> None:
    if result.succeeded:
        print(f"[SUCCESS] {result.detail} by AGV {result.unit_id}")
    else:
        reason = result.reason.value if result.reason else "unknown"
        print(f"[ERROR] {result.task_type.value} box {result.box_id} failed ({reason}): {result.detail}")


def print_counters(snapshot: CounterSnapshot) -> None:
    print(f"[INFO] Total boxes entered: {snapshot.entered}")
    print(f"[INFO] Total boxes stored: {snapshot.stored}")
    print(f"[INFO] Total boxes exited: {snapshot.exited}")
    print(f"[INFO] Boxes in storage: {snapshot.in_storage}")
    print(f"[INFO] Failed tasks: {snapshot.failed}")


def print_status(cell: IWarehouseCell) -> None:
    status = cell.get_status()
    print(f"=== Storage Info ({status.cell_id}: {status.stored_count} stored, {status.free_count} free) ===")
    for line in status.contents:
        print(f"  {line}")
    print("=== AGV Info ===")
    for unit in status.units:
        carried = f" | Carrying: {unit.carried_box_id}" if unit.carried_box_id else ""
        print(
            f"[INFO] AGV#{unit.unit_id} | Battery: {unit.battery_level:.1f}% | "
            f"Active: {unit.active} | Position: {unit.position}{carried}"
        )
    print("=== Charging Stations ===")
    for station in status.stations:
        occupant = f" | Occupant: {station.occupant_id}" if station.occupant_id else ""
        print(
            f"[INFO] {station.station_id} at {station.position} | {station.status.value} | "
            f"Charges: {station.charge_count}{occupant}"
        )


def run_demo(cell: IWarehouseCell) -> List[TaskResult]:
    results = []
    for box_id, weight, content in DEMO_BOXES:
        results.append(cell.submit_store(build_box(box_id, weight, content)))
    # Duplicate id is rejected at allocation
    results.append(cell.submit_store(build_box("B100", "1", "Duplicate")))
    results.append(cell.submit_retrieve("B101"))
    results.append(cell.submit_retrieve("B999"))
    for result in results:
        print_result(result)
    return results


def run_batch(cell: IWarehouseCell, entries: List[Dict[str, Any]], parallel: bool = False,
              config_provider: Optional[ConfigurationProvider] = None) -> Tuple[List[TaskResult], int]:
    """
    Execute request entries in file order, or concurrently with --parallel.

    Returns:
        Tuple of task results and the number of entries rejected before execution
    """
    requests: List[TaskRequest] = []
    failures = 0
    for index, entry in enumerate(entries, start=1):
        try:
            requests.append(build_request(entry))
        except WarehouseCellError as e:
            failures += 1
            print(f"[ERROR] Request #{index} rejected: {e}")

    if parallel:
        dispatcher = CellDispatcherImpl([cell], config_provider=config_provider)
        try:
            results = dispatcher.run_all(requests)
        finally:
            dispatcher.shutdown()
    else:
        results = [run_request(cell, request) for request in requests]

    for result in results:
        print_result(result)
    if failures:
        logger.warning(f"{failures} request(s) were rejected before execution")
    return results, failures


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="cell_cli", description="AGV Storage Cell")
    parser.add_argument("--config", required=False, help="Configuration file (YAML or JSON)")
    parser.add_argument("--log-level", required=False, help="Override system.log_level (e.g. DEBUG)")
    sub = parser.add_subparsers(dest="command", required=True)

    p_demo = sub.add_parser("demo", help="Run the scripted demo scenario")
    p_demo.add_argument("--store-battery", type=float, required=False,
                        help="Starting battery level of the active storing AGV (e.g. 15 to force a swap)")

    p_run = sub.add_parser("run", help="Run requests from a YAML or JSON file")
    p_run.add_argument("--requests", required=True, help="Requests file")
    p_run.add_argument("--parallel", action="store_true", help="Run requests on the dispatcher worker pool")

    args = parser.parse_args(argv)

    pipeline = None
    try:
        provider = ConfigurationProvider(config_file=args.config)
        configure_logging(provider.get_system_config(), level_override=args.log_level)
        if provider.errors:
            print(f"[ERROR] Invalid configuration: {'; '.join(provider.errors)}")
            return 1

        cell_config = provider.get_cell_config()
        pipeline = build_event_pipeline(provider, cell_id=cell_config.cell_id)

        battery_levels = None
        if args.command == "demo" and args.store_battery is not None:
            battery_levels = {cell_config.store_unit_ids[0]: args.store_battery}
        cell = WarehouseCellImpl.from_config(provider, event_sink=pipeline.sink, battery_levels=battery_levels)

        if args.command == "demo":
            run_demo(cell)
            exit_code = 0
        elif args.command == "run":
            entries = load_requests(args.requests)
            results, rejected = run_batch(cell, entries, parallel=args.parallel, config_provider=provider)
            exit_code = 0 if rejected == 0 and all(r.succeeded for r in results) else 1
        else:
            parser.print_help()
            return 1

        print_counters(pipeline.counters.snapshot())
        print_status(cell)
        return exit_code
    except (ConfigurationError, WarehouseCellError) as e:
        print(f"[ERROR] {e}")
        return 1
    except Exception as e:
        logging.error("Cell CLI failed: %s", e, exc_info=True)
        print(f"[ERROR] {e}")
        return 2
    finally:
        if pipeline is not None:
            pipeline.close()


if __name__ == "__main__":
    sys.exit(main())
