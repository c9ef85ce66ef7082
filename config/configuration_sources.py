"""
Configuration Sources - Layers merged by the configuration provider.

Three layers exist, lowest priority first:

- DefaultConfigurationSource: the reference cell (5x5 grid, pickup at [-1,-1],
  dropoff at [5,5], store pair 1/2 at CS1, retrieve pair 3/4 at CS2)
- FileConfigurationSource: a JSON or YAML document with one mapping per section
- EnvironmentConfigurationSource: WAREHOUSE_<SECTION>_<KEY> variables

Every layer yields a flat dictionary keyed by dotted names
("battery.low_threshold"), so the provider merges them with dict.update().
"""
import os
import json
import yaml
from typing import Dict, Any, Iterable
from pathlib import Path

from interfaces.configuration_interface import (
    IConfigurationSource, ConfigurationSource, ConfigurationError
)


# Longest first: WAREHOUSE_EVENT_RECORDER_DB_ENABLED -> event_recorder.db_enabled
KNOWN_SECTIONS = (
    "charging_station", "event_recorder", "database", "battery",
    "system", "cell", "task",
)

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def flatten_config(data: Dict[str, Any], parent_key: str = "") -> Dict[str, Any]:
    """
    Flatten nested sections into dotted keys.

    Lists stay leaf values: {"charging_station": {"stations": [...]}} becomes
    {"charging_station.stations": [...]}.
    """
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        dotted = f"{parent_key}.{key}" if parent_key else str(key)
        if isinstance(value, dict):
            flat.update(flatten_config(value, dotted))
        else:
            flat[dotted] = value
    return flat


class EnvironmentConfigurationSource(IConfigurationSource):
    """
    Highest-priority layer, read from the process environment.

    Values are parsed as YAML scalars, so "5" is an int, "true" a bool and
    "[0, 5]" a list; anything that does not parse stays a string.
    """

    def __init__(self, prefix: str = "WAREHOUSE_", sections: Iterable[str] = KNOWN_SECTIONS):
        self.prefix = prefix
        self.sections = sorted(sections, key=len, reverse=True)

    def load_configuration(self) -> Dict[str, Any]:
        return {
            self._convert_env_key_to_config_key(name): self._parse_env_value(raw)
            for name, raw in os.environ.items()
            if name.startswith(self.prefix)
        }

    def get_source_type(self) -> ConfigurationSource:
        return ConfigurationSource.ENVIRONMENT

    def _convert_env_key_to_config_key(self, env_key: str) -> str:
        """WAREHOUSE_TASK_MOVE_COST -> task.move_cost"""
        name = env_key[len(self.prefix):].lower()
        for section in self.sections:
            if name.startswith(section + "_"):
                return f"{section}.{name[len(section) + 1:]}"
        head, _, tail = name.partition("_")
        return f"{head}.{tail}" if tail else head

    def _parse_env_value(self, value: str) -> Any:
        try:
            parsed = yaml.safe_load(value)
        except yaml.YAMLError:
            return value
        if parsed is None or isinstance(parsed, dict):
            return value
        return parsed


class FileConfigurationSource(IConfigurationSource):
    """
    Middle layer, read from a configuration file.

    The format is taken from the extension (.json, .yml, .yaml) unless given
    explicitly; files with another extension are sniffed from their first line.
    """

    def __init__(self, file_path: str, file_format: str = "auto"):
        self.file_path = Path(file_path)
        self.file_format = file_format

    def load_configuration(self) -> Dict[str, Any]:
        """
        Read and flatten the file.

        Raises:
            ConfigurationError: If the file is missing, unreadable, malformed
                or does not hold a mapping
        """
        if not self.file_path.is_file():
            raise ConfigurationError(f"Configuration file not found: {self.file_path}")

        file_format = self._determine_format()
        if file_format not in ("json", "yaml"):
            raise ConfigurationError(f"Unsupported file format: {file_format}")

        try:
            with open(self.file_path, "r") as f:
                data = json.load(f) if file_format == "json" else yaml.safe_load(f)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load {self.file_path}: {e}")

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file must hold a mapping: {self.file_path}")
        return flatten_config(data)

    def get_source_type(self) -> ConfigurationSource:
        return ConfigurationSource.FILE

    def _determine_format(self) -> str:
        if self.file_format != "auto":
            return self.file_format
        suffix = self.file_path.suffix.lower()
        if suffix == ".json":
            return "json"
        if suffix in (".yml", ".yaml"):
            return "yaml"
        with open(self.file_path, "r") as f:
            return "json" if f.readline().lstrip().startswith("{") else "yaml"


class DefaultConfigurationSource(IConfigurationSource):
    """Lowest-priority layer: the reference cell layout and costs."""

    def load_configuration(self) -> Dict[str, Any]:
        defaults = {
            "cell": {
                "cell_id": "cell-1",
                "rows": 5,
                "cols": 5,
                "pickup_position": [-1, -1],
                "dropoff_position": [5, 5],
                "unit_start_position": [10, 10],
                "store_unit_ids": ["1", "2"],
                "retrieve_unit_ids": ["3", "4"],
                "store_station_id": "CS1",
                "retrieve_station_id": "CS2",
            },
            "battery": {
                "initial_level": 100.0,
                "low_threshold": 20.0,
                "recharge_step": 20.0,
                "charge_tick_seconds": 0.0,
                "randomize_initial_level": False,
                "initial_level_min": 80.0,
                "initial_level_max": 100.0,
            },
            "task": {
                "move_cost": 5.0,
                "store_carry_cost": 20.0,
                "retrieve_carry_cost": 15.0,
                "max_concurrent_tasks": 4,
                "station_assign_timeout": 30.0,
            },
            "charging_station": {
                "stations": [
                    {"station_id": "CS1", "position": [0, 5]},
                    {"station_id": "CS2", "position": [1, 5]},
                ],
            },
            "event_recorder": {
                "log_events": True,
                "db_enabled": False,
                "flush_interval": 60.0,
                "max_batch_size": 256,
                "queue_capacity": 8192,
                "table_name": "cell_events",
            },
            # Short WAREHOUSE_DB_* variables are honoured as deployment defaults
            "database": {
                "host": os.getenv("WAREHOUSE_DB_HOST", "localhost"),
                "port": int(os.getenv("WAREHOUSE_DB_PORT", "5432")),
                "database": os.getenv("WAREHOUSE_DB_NAME", "warehouse_cell"),
                "user": os.getenv("WAREHOUSE_DB_USER", "postgres"),
                "password": os.getenv("WAREHOUSE_DB_PASSWORD"),
                "pool_size": int(os.getenv("WAREHOUSE_DB_POOL_SIZE", "5")),
                "connect_timeout": int(os.getenv("WAREHOUSE_DB_CONNECT_TIMEOUT", "10")),
                "application_name": os.getenv("WAREHOUSE_DB_APP_NAME", "agv_storage_cell"),
            },
            "system": {
                "log_level": "INFO",
                "log_file": None,
                "log_format": DEFAULT_LOG_FORMAT,
            },
        }
        return flatten_config(defaults)

    def get_source_type(self) -> ConfigurationSource:
        return ConfigurationSource.DEFAULT
