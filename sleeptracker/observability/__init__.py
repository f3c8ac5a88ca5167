from .log_manager import LogManager
from .log_manager import StructuredLoggerAdapter
from .log_manager import get_component_logger
from .log_manager import get_log_manager

__all__ = [
    "LogManager",
    "StructuredLoggerAdapter",
    "get_component_logger",
    "get_log_manager",
]
