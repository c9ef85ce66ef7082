"""
Configuration Interface - Typed settings for a storage cell.

Settings are grouped into sections, one dataclass each:

- cell: grid size, pickup/dropoff/start points, unit pairs and their stations
- battery: thresholds and charging pace
- task: movement and carry costs, worker and station-wait limits
- charging_station: station ids and positions
- event_recorder, database: event persistence
- system: logging

Design Principles:
- **Typed access**: Components receive section dataclasses, never raw dictionaries
- **Layered sources**: Defaults, file, environment and runtime overrides merge by key
- **Validation at load**: Errors are collected up front and exposed through
  IBusinessConfigurationProvider.errors
"""
from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field
from enum import Enum

from interfaces.warehouse_types import Position


class ConfigurationSource(Enum):
    """Configuration source types."""
    ENVIRONMENT = "environment"
    FILE = "file"
    RUNTIME = "runtime"
    DEFAULT = "default"


@dataclass
class ConfigurationValue:
    """A configuration value with metadata."""
    value: Any
    source: ConfigurationSource
    key: str
    description: str
    validation_errors: Optional[List[str]] = None

    def __post_init__(self):
        if self.validation_errors is None:
            self.validation_errors = []


@dataclass
class CellConfig:
    """Storage cell layout: grid size, fixed points and unit pairs."""
    cell_id: str
    rows: int
    cols: int

    # Fixed points outside the storage grid
    pickup_position: Position
    dropoff_position: Position
    unit_start_position: Position

    # Unit pairs (first id starts active, second starts as standby)
    store_unit_ids: List[str]
    retrieve_unit_ids: List[str]

    # Charging station serving each pair
    store_station_id: str
    retrieve_station_id: str


@dataclass
class BatteryConfig:
    """Unit battery parameters (charge levels are percentages)."""
    initial_level: float
    low_threshold: float  # is_low() <=> level < low_threshold
    recharge_step: float  # Charge added per tick
    charge_tick_seconds: float  # Logical tick duration, 0 for instant ticks

    # Randomized starting charge
    randomize_initial_level: bool
    initial_level_min: float
    initial_level_max: float


@dataclass
class TaskConfig:
    """Task execution costs and concurrency limits."""
    move_cost: float
    store_carry_cost: float
    retrieve_carry_cost: float
    max_concurrent_tasks: int  # Dispatcher worker threads
    station_assign_timeout: Optional[float]  # seconds, None waits indefinitely


@dataclass(frozen=True)
class StationSpec:
    """Location of one charging station."""
    station_id: str
    position: Position


@dataclass
class ChargingStationConfig:
    """Charging stations available to the cell."""
    stations: List[StationSpec] = field(default_factory=list)

    def get_station(self, station_id: str) -> Optional[StationSpec]:
        for spec in self.stations:
            if spec.station_id == station_id:
                return spec
        return None


@dataclass
class EventRecorderConfig:
    """Event sink selection and database recorder tuning."""
    log_events: bool
    db_enabled: bool
    flush_interval: float  # seconds
    max_batch_size: int
    queue_capacity: int
    table_name: str


@dataclass
class DatabaseConfig:
    """Database connection configuration."""
    host: str
    port: int
    database: str
    user: str
    password: Optional[str]
    pool_size: int
    connect_timeout: int
    application_name: str


@dataclass
class SystemConfig:
    """System-wide configuration."""
    log_level: str
    log_file: Optional[str]
    log_format: str


class ConfigurationError(Exception):
    """Raised when configuration cannot be loaded or converted."""
    pass


class IBusinessConfigurationProvider(ABC):
    """
    Source of typed configuration sections for cell components.

    Every getter builds a fresh section object from the merged layers, so a
    runtime override is visible to the next component that asks for it.

    Raises (all getters):
        ConfigurationError: If a value cannot be converted to its section type
    """

    @abstractmethod
    def get_cell_config(self) -> CellConfig:
        """Grid dimensions, fixed points, unit pairs and their stations."""
        pass

    @abstractmethod
    def get_battery_config(self) -> BatteryConfig:
        """Battery thresholds, recharge step and tick duration."""
        pass

    @abstractmethod
    def get_task_config(self) -> TaskConfig:
        """Movement and carry costs plus concurrency limits."""
        pass

    @abstractmethod
    def get_charging_station_config(self) -> ChargingStationConfig:
        """Configured charging stations."""
        pass

    @abstractmethod
    def get_event_recorder_config(self) -> EventRecorderConfig:
        """Which event sinks to build and how the database recorder batches."""
        pass

    @abstractmethod
    def get_database_config(self) -> DatabaseConfig:
        """Connection settings for the event database."""
        pass

    @abstractmethod
    def get_system_config(self) -> SystemConfig:
        """Logging level, format and optional log file."""
        pass

    @abstractmethod
    def get_value(self, key: str, default: Any = None) -> ConfigurationValue:
        """
        Look up one dotted key together with the layer it came from.

        Args:
            key: Dotted key such as "battery.low_threshold"
            default: Value reported when no layer defines the key

        Returns:
            ConfigurationValue: Value, source layer and validation errors
        """
        pass

    @abstractmethod
    def set_value(self, key: str, value: Any, source: ConfigurationSource = ConfigurationSource.RUNTIME) -> None:
        """
        Override one dotted key at runtime and re-validate.

        Overrides win over every other layer and survive reload().
        """
        pass

    @abstractmethod
    def reload(self) -> None:
        """Re-read every source layer and re-validate."""
        pass

    @abstractmethod
    def validate(self) -> List[str]:
        """
        Validate every section against the current merged values.

        Returns:
            List[str]: Human-readable errors, empty when the configuration is usable
        """
        pass

    @property
    @abstractmethod
    def errors(self) -> List[str]:
        """Errors found by the most recent validation."""
        pass


class IConfigurationValidator(ABC):
    """
    Rule checks for each configuration section.

    Each method returns a list of messages and never raises, so one bad
    section does not hide problems in another.
    """

    @abstractmethod
    def validate_cell_config(self, config: CellConfig) -> List[str]:
        """Grid size, disjoint unit pairs, separate stations and off-grid fixed points."""
        pass

    @abstractmethod
    def validate_battery_config(self, config: BatteryConfig) -> List[str]:
        """Levels within [0, 100] and a positive recharge step."""
        pass

    @abstractmethod
    def validate_task_config(self, config: TaskConfig) -> List[str]:
        """Non-negative costs and a positive worker count."""
        pass

    @abstractmethod
    def validate_charging_station_config(self, config: ChargingStationConfig,
                                         cell_config: CellConfig) -> List[str]:
        """
        Check stations against the cell layout.

        Args:
            config: Configured stations
            cell_config: Cell naming the stations its pairs use

        Returns:
            List[str]: Errors for duplicate ids or stations the cell names but
                the configuration lacks
        """
        pass

    @abstractmethod
    def validate_event_recorder_config(self, config: EventRecorderConfig) -> List[str]:
        """Batch, queue and interval limits plus a valid table name."""
        pass

    @abstractmethod
    def validate_database_config(self, config: DatabaseConfig) -> List[str]:
        """Non-empty host, name and user, port range and pool limits."""
        pass

    @abstractmethod
    def validate_system_config(self, config: SystemConfig) -> List[str]:
        """Known log level name and a log format."""
        pass


class IConfigurationSource(ABC):
    """One configuration layer producing a flat dotted-key dictionary."""

    @abstractmethod
    def load_configuration(self) -> Dict[str, Any]:
        """
        Read the layer.

        Returns:
            Dict[str, Any]: Values keyed by dotted names

        Raises:
            ConfigurationError: If the layer exists but cannot be read
        """
        pass

    @abstractmethod
    def get_source_type(self) -> ConfigurationSource:
        """Layer kind, recorded as the origin of each value."""
        pass
