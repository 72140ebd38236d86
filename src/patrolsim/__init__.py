"""patrolsim - Patrol simulation engine with pluggable decision strategies."""

from patrolsim.logging_config import configure_logging, get_logger

__version__ = "0.1.0"

__all__ = ["__version__", "configure_logging", "get_logger"]
