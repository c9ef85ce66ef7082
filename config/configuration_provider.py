"""
Configuration Provider Implementation - Centralized configuration composition root.

This provider loads, merges, and validates configuration from all sources
(runtime overrides > env > file > defaults), providing type-safe access and
supporting reloads and validation.
"""
import logging
import threading
from typing import Dict, Any, Optional, List

from interfaces.configuration_interface import (
    IBusinessConfigurationProvider, IConfigurationSource, IConfigurationValidator,
    CellConfig, BatteryConfig, TaskConfig, ChargingStationConfig, StationSpec,
    EventRecorderConfig, DatabaseConfig, SystemConfig,
    ConfigurationSource, ConfigurationValue, ConfigurationError
)
from interfaces.warehouse_types import Position
from config.configuration_sources import (
    EnvironmentConfigurationSource, FileConfigurationSource, DefaultConfigurationSource, DEFAULT_LOG_FORMAT
)
from config.configuration_validator import ConfigurationValidatorImpl


class ConfigurationProvider(IBusinessConfigurationProvider):
    """
    Centralized configuration provider that merges all sources and validates configuration.
    Thread-safe and supports reloads.
    """
    def __init__(self,
                 config_file: Optional[str] = None,
                 config_file_format: str = "auto",
                 env_prefix: str = "WAREHOUSE_",
                 validator: Optional[IConfigurationValidator] = None):
        self._lock = threading.RLock()
        self._sources: List[IConfigurationSource] = []
        self._config: Dict[str, Any] = {}
        self._origins: Dict[str, ConfigurationSource] = {}
        self._overrides: Dict[str, Any] = {}  # Runtime overrides
        self._validator = validator or ConfigurationValidatorImpl()
        self._errors: List[str] = []
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self._init_sources(config_file, config_file_format, env_prefix)
        self.reload()

    def _init_sources(self, config_file, config_file_format, env_prefix):
        # Order: env > file > defaults
        self._sources = [
            EnvironmentConfigurationSource(prefix=env_prefix)
        ]
        if config_file:
            self._sources.append(FileConfigurationSource(config_file, config_file_format))
        self._sources.append(DefaultConfigurationSource())

    def reload(self) -> None:
        """Reload configuration from all sources and validate."""
        with self._lock:
            merged: Dict[str, Any] = {}
            origins: Dict[str, ConfigurationSource] = {}
            for source in reversed(self._sources):  # Defaults first, env last
                try:
                    conf = source.load_configuration()
                except ConfigurationError as e:
                    self.logger.warning(f"Skipping {source.get_source_type().value} configuration: {e}")
                    continue
                merged.update(conf)
                origins.update({key: source.get_source_type() for key in conf})
            self._config = merged
            self._origins = origins
            self._errors = self.validate()
            if self._errors:
                self.logger.warning(f"Configuration has {len(self._errors)} validation error(s): {self._errors}")

    def validate(self) -> List[str]:
        """Validate all configuration sections and return errors."""
        errors = []
        try:
            cell_config = self.get_cell_config()
            errors.extend(self._validator.validate_cell_config(cell_config))
            errors.extend(self._validator.validate_battery_config(self.get_battery_config()))
            errors.extend(self._validator.validate_task_config(self.get_task_config()))
            errors.extend(self._validator.validate_charging_station_config(
                self.get_charging_station_config(), cell_config))
            errors.extend(self._validator.validate_event_recorder_config(self.get_event_recorder_config()))
            errors.extend(self._validator.validate_database_config(self.get_database_config()))
            errors.extend(self._validator.validate_system_config(self.get_system_config()))
        except (ConfigurationError, TypeError, ValueError) as e:
            errors.append(f"Validation error: {e}")
        return errors

    def _merged(self) -> Dict[str, Any]:
        with self._lock:
            return {**self._config, **self._overrides}  # Overrides win

    @staticmethod
    def _position(value: Any, key: str) -> Position:
        if isinstance(value, Position):
            return value
        if isinstance(value, dict):
            value = (value.get("row"), value.get("col"))
        try:
            return Position.from_sequence(value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"{key}: invalid position {value!r} ({e})")

    def get_cell_config(self) -> CellConfig:
        c = self._merged()
        return CellConfig(
            cell_id=str(c.get("cell.cell_id", "cell-1")),
            rows=int(c.get("cell.rows", 5)),
            cols=int(c.get("cell.cols", 5)),
            pickup_position=self._position(c.get("cell.pickup_position", [-1, -1]), "cell.pickup_position"),
            dropoff_position=self._position(c.get("cell.dropoff_position", [5, 5]), "cell.dropoff_position"),
            unit_start_position=self._position(c.get("cell.unit_start_position", [10, 10]),
                                               "cell.unit_start_position"),
            store_unit_ids=[str(u) for u in c.get("cell.store_unit_ids", ["1", "2"])],
            retrieve_unit_ids=[str(u) for u in c.get("cell.retrieve_unit_ids", ["3", "4"])],
            store_station_id=str(c.get("cell.store_station_id", "CS1")),
            retrieve_station_id=str(c.get("cell.retrieve_station_id", "CS2")),
        )

    def get_battery_config(self) -> BatteryConfig:
        """Get unit battery configuration."""
        c = self._merged()
        return BatteryConfig(
            initial_level=float(c.get("battery.initial_level", 100.0)),
            low_threshold=float(c.get("battery.low_threshold", 20.0)),
            recharge_step=float(c.get("battery.recharge_step", 20.0)),
            charge_tick_seconds=float(c.get("battery.charge_tick_seconds", 0.0)),
            randomize_initial_level=bool(c.get("battery.randomize_initial_level", False)),
            initial_level_min=float(c.get("battery.initial_level_min", 80.0)),
            initial_level_max=float(c.get("battery.initial_level_max", 100.0)),
        )

    def get_task_config(self) -> TaskConfig:
        c = self._merged()
        timeout = c.get("task.station_assign_timeout", 30.0)
        return TaskConfig(
            move_cost=float(c.get("task.move_cost", 5.0)),
            store_carry_cost=float(c.get("task.store_carry_cost", 20.0)),
            retrieve_carry_cost=float(c.get("task.retrieve_carry_cost", 15.0)),
            max_concurrent_tasks=int(c.get("task.max_concurrent_tasks", 4)),
            station_assign_timeout=None if timeout is None else float(timeout),
        )

    def get_charging_station_config(self) -> ChargingStationConfig:
        """Get charging station configuration."""
        c = self._merged()
        stations = []
        for entry in c.get("charging_station.stations", []) or []:
            if not isinstance(entry, dict) or "station_id" not in entry:
                raise ConfigurationError(f"charging_station.stations: invalid entry {entry!r}")
            raw_position = entry.get("position", [entry.get("row"), entry.get("col")])
            stations.append(StationSpec(
                station_id=str(entry["station_id"]),
                position=self._position(raw_position, f"charging_station.{entry['station_id']}"),
            ))
        return ChargingStationConfig(stations=stations)

    def get_event_recorder_config(self) -> EventRecorderConfig:
        c = self._merged()
        return EventRecorderConfig(
            log_events=bool(c.get("event_recorder.log_events", True)),
            db_enabled=bool(c.get("event_recorder.db_enabled", False)),
            flush_interval=float(c.get("event_recorder.flush_interval", 60.0)),
            max_batch_size=int(c.get("event_recorder.max_batch_size", 256)),
            queue_capacity=int(c.get("event_recorder.queue_capacity", 8192)),
            table_name=str(c.get("event_recorder.table_name", "cell_events")),
        )

    def get_database_config(self) -> DatabaseConfig:
        c = self._merged()
        password = c.get("database.password")
        return DatabaseConfig(
            host=c.get("database.host", "localhost"),
            port=int(c.get("database.port", 5432)),
            database=c.get("database.database", "warehouse_cell"),
            user=c.get("database.user", "postgres"),
            password=None if password is None else str(password),
            pool_size=int(c.get("database.pool_size", 5)),
            connect_timeout=int(c.get("database.connect_timeout", 10)),
            application_name=c.get("database.application_name", "agv_storage_cell"),
        )

    def get_system_config(self) -> SystemConfig:
        c = self._merged()
        return SystemConfig(
            log_level=c.get("system.log_level", "INFO"),
            log_file=c.get("system.log_file", None),
            log_format=c.get("system.log_format", DEFAULT_LOG_FORMAT),
        )

    def get_value(self, key: str, default: Any = None) -> ConfigurationValue:
        with self._lock:
            if key in self._overrides:
                value, source = self._overrides[key], ConfigurationSource.RUNTIME
            elif key in self._config:
                value, source = self._config[key], self._origins.get(key, ConfigurationSource.DEFAULT)
            else:
                value, source = default, ConfigurationSource.DEFAULT
        return ConfigurationValue(
            value=value,
            source=source,
            key=key,
            description=f"Config value for {key}",
            validation_errors=[]
        )

    def set_value(self, key: str, value: Any, source: ConfigurationSource = ConfigurationSource.RUNTIME) -> None:
        with self._lock:
            self._overrides[key] = value
            self._errors = self.validate()

    @property
    def errors(self) -> List[str]:
        return self._errors.copy()
