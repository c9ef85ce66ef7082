"""
Logging setup from the system configuration section.

Applies level and format to the root logger and optionally adds a file
handler. Safe to call more than once: handlers installed by an earlier call
are replaced, not duplicated.
"""
import logging
from typing import Optional

from interfaces.configuration_interface import SystemConfig

_HANDLER_MARK = "_warehouse_cell_handler"


def configure_logging(config: SystemConfig, level_override: Optional[str] = None) -> logging.Logger:
    """
    Configure the root logger.

    Args:
        config: System section (log_level, log_format, log_file)
        level_override: Level name that wins over config.log_level (e.g. from --log-level)

    Returns:
        logging.Logger: The configured root logger
    """
    level_name = (level_override or config.log_level or "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    formatter = logging.Formatter(config.log_format)

    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_MARK, False):
            root.removeHandler(handler)
            handler.close()

    handlers = [logging.StreamHandler()]
    if config.log_file:
        handlers.append(logging.FileHandler(config.log_file, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        setattr(handler, _HANDLER_MARK, True)
        root.addHandler(handler)

    root.debug(f"Logging configured at {level_name}" + (f", file {config.log_file}" if config.log_file else ""))
    return root
