"""
Configuration Validator Implementation - Storage cell configuration validation.

This implementation validates every configuration section with detailed error
messages. Simple per-field checks are expressed as ValidationRule lists; checks
that relate several fields are written out after the rules are applied.
"""
from typing import List
from dataclasses import dataclass

from interfaces.configuration_interface import (
    IConfigurationValidator, CellConfig, BatteryConfig, TaskConfig,
    ChargingStationConfig, EventRecorderConfig, DatabaseConfig, SystemConfig
)


@dataclass
class ValidationRule:
    """A validation rule with condition and error message."""
    condition: callable
    error_message: str
    field_name: str


def _apply_rules(rules: List[ValidationRule], config, section: str) -> List[str]:
    errors = []
    for rule in rules:
        try:
            ok = rule.condition(config)
        except (TypeError, ValueError, AttributeError):
            ok = False
        if not ok:
            errors.append(f"{section}.{rule.field_name}: {rule.error_message}")
    return errors


class ConfigurationValidatorImpl(IConfigurationValidator):
    """
    Rule-based validator for every cell configuration section.

    Per-field rules are built once in __init__; checks spanning several fields
    (disjoint unit pairs, off-grid fixed points, stations named by the cell)
    follow the rules in each validate_* method.
    """

    def __init__(self):
        """Initialize validator with validation rules."""
        self._cell_rules = self._create_cell_validation_rules()
        self._battery_rules = self._create_battery_validation_rules()
        self._task_rules = self._create_task_validation_rules()
        self._event_recorder_rules = self._create_event_recorder_validation_rules()
        self._database_rules = self._create_database_validation_rules()
        self._system_rules = self._create_system_validation_rules()

    def validate_cell_config(self, config: CellConfig) -> List[str]:
        errors = _apply_rules(self._cell_rules, config, "Cell")

        # Cross-field validation
        if set(config.store_unit_ids) & set(config.retrieve_unit_ids):
            errors.append("Cell.store_unit_ids: Unit pairs must not share units")

        if config.store_station_id == config.retrieve_station_id:
            errors.append("Cell.retrieve_station_id: Each pair needs its own charging station")

        for name in ("pickup_position", "dropoff_position"):
            position = getattr(config, name)
            if 0 <= position.row < config.rows and 0 <= position.col < config.cols:
                errors.append(f"Cell.{name}: Must lie outside the storage grid")

        return errors

    def validate_battery_config(self, config: BatteryConfig) -> List[str]:
        errors = _apply_rules(self._battery_rules, config, "Battery")

        if config.randomize_initial_level and config.initial_level_min > config.initial_level_max:
            errors.append("Battery.initial_level_min: Minimum cannot exceed maximum")

        return errors

    def validate_task_config(self, config: TaskConfig) -> List[str]:
        return _apply_rules(self._task_rules, config, "Task")

    def validate_charging_station_config(self, config: ChargingStationConfig,
                                         cell_config: CellConfig) -> List[str]:
        """Stations must be unique by id and position, and cover both pairs."""
        errors = []
        ids = [spec.station_id for spec in config.stations]
        if len(ids) != len(set(ids)):
            errors.append("ChargingStation.stations: Station ids must be unique")

        positions = [spec.position for spec in config.stations]
        if len(positions) != len(set(positions)):
            errors.append("ChargingStation.stations: Stations cannot share a position")

        for station_id in (cell_config.store_station_id, cell_config.retrieve_station_id):
            if station_id not in ids:
                errors.append(f"ChargingStation.stations: Station {station_id} is not configured")

        return errors

    def validate_event_recorder_config(self, config: EventRecorderConfig) -> List[str]:
        return _apply_rules(self._event_recorder_rules, config, "EventRecorder")

    def validate_database_config(self, config: DatabaseConfig) -> List[str]:
        errors = _apply_rules(self._database_rules, config, "Database")

        # Cross-field validation
        if config.port < 1 or config.port > 65535:
            errors.append("Database.port: Port must be between 1 and 65535")

        return errors

    def validate_system_config(self, config: SystemConfig) -> List[str]:
        errors = _apply_rules(self._system_rules, config, "System")

        valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if str(config.log_level).upper() not in valid_log_levels:
            errors.append(f"System.log_level: Must be one of {valid_log_levels}")

        return errors

    def _create_cell_validation_rules(self) -> List[ValidationRule]:
        """Create validation rules for cell configuration."""
        return [
            ValidationRule(
                lambda c: c.cell_id and len(c.cell_id.strip()) > 0,
                "Cell id cannot be empty",
                "cell_id"
            ),
            ValidationRule(
                lambda c: c.rows > 0,
                "Rows must be positive",
                "rows"
            ),
            ValidationRule(
                lambda c: c.cols > 0,
                "Columns must be positive",
                "cols"
            ),
            ValidationRule(
                lambda c: len(c.store_unit_ids) == 2 and len(set(c.store_unit_ids)) == 2,
                "Store pair needs exactly two distinct unit ids",
                "store_unit_ids"
            ),
            ValidationRule(
                lambda c: len(c.retrieve_unit_ids) == 2 and len(set(c.retrieve_unit_ids)) == 2,
                "Retrieve pair needs exactly two distinct unit ids",
                "retrieve_unit_ids"
            ),
        ]

    def _create_battery_validation_rules(self) -> List[ValidationRule]:
        """Create validation rules for battery configuration."""
        return [
            ValidationRule(
                lambda c: 0.0 <= c.initial_level <= 100.0,
                "Initial level must be between 0 and 100",
                "initial_level"
            ),
            ValidationRule(
                lambda c: 0.0 < c.low_threshold < 100.0,
                "Low threshold must be between 0 and 100 (exclusive)",
                "low_threshold"
            ),
            ValidationRule(
                lambda c: c.recharge_step > 0,
                "Recharge step must be positive",
                "recharge_step"
            ),
            ValidationRule(
                lambda c: c.charge_tick_seconds >= 0,
                "Charge tick must not be negative",
                "charge_tick_seconds"
            ),
            ValidationRule(
                lambda c: 0.0 <= c.initial_level_min <= 100.0,
                "Minimum initial level must be between 0 and 100",
                "initial_level_min"
            ),
            ValidationRule(
                lambda c: 0.0 <= c.initial_level_max <= 100.0,
                "Maximum initial level must be between 0 and 100",
                "initial_level_max"
            ),
        ]

    def _create_task_validation_rules(self) -> List[ValidationRule]:
        """Create validation rules for task configuration."""
        return [
            ValidationRule(
                lambda c: c.move_cost >= 0,
                "Move cost must not be negative",
                "move_cost"
            ),
            ValidationRule(
                lambda c: c.store_carry_cost >= 0,
                "Store carry cost must not be negative",
                "store_carry_cost"
            ),
            ValidationRule(
                lambda c: c.retrieve_carry_cost >= 0,
                "Retrieve carry cost must not be negative",
                "retrieve_carry_cost"
            ),
            ValidationRule(
                lambda c: c.max_concurrent_tasks > 0,
                "Max concurrent tasks must be positive",
                "max_concurrent_tasks"
            ),
            ValidationRule(
                lambda c: c.station_assign_timeout is None or c.station_assign_timeout > 0,
                "Station assign timeout must be positive or unset",
                "station_assign_timeout"
            ),
        ]

    def _create_event_recorder_validation_rules(self) -> List[ValidationRule]:
        """Create validation rules for event recorder configuration."""
        return [
            ValidationRule(
                lambda c: c.flush_interval > 0,
                "Flush interval must be positive",
                "flush_interval"
            ),
            ValidationRule(
                lambda c: c.max_batch_size > 0,
                "Max batch size must be positive",
                "max_batch_size"
            ),
            ValidationRule(
                lambda c: c.queue_capacity > 0,
                "Queue capacity must be positive",
                "queue_capacity"
            ),
            ValidationRule(
                lambda c: c.table_name and c.table_name.replace("_", "").isalnum(),
                "Table name must be a plain identifier",
                "table_name"
            ),
        ]

    def _create_database_validation_rules(self) -> List[ValidationRule]:
        """Create validation rules for database configuration."""
        return [
            ValidationRule(
                lambda c: c.host and len(c.host.strip()) > 0,
                "Database host cannot be empty",
                "host"
            ),
            ValidationRule(
                lambda c: c.database and len(c.database.strip()) > 0,
                "Database name cannot be empty",
                "database"
            ),
            ValidationRule(
                lambda c: c.user and len(c.user.strip()) > 0,
                "Database user cannot be empty",
                "user"
            ),
            ValidationRule(
                lambda c: c.pool_size >= 1,
                "Pool size must be at least 1",
                "pool_size"
            ),
            ValidationRule(
                lambda c: c.connect_timeout >= 1,
                "Connect timeout must be at least 1 second",
                "connect_timeout"
            ),
        ]

    def _create_system_validation_rules(self) -> List[ValidationRule]:
        """Create validation rules for system configuration."""
        return [
            ValidationRule(
                lambda c: c.log_level and len(c.log_level.strip()) > 0,
                "Log level cannot be empty",
                "log_level"
            ),
            ValidationRule(
                lambda c: c.log_format and len(c.log_format.strip()) > 0,
                "Log format cannot be empty",
                "log_format"
            ),
        ]
