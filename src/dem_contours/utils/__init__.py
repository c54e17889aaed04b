"""Configuration and logging helpers."""

from .config import Config, load_config
from .logging_config import configure_logging

__all__ = [
    "Config",
    "load_config",
    "configure_logging"
]
