"""
Core module initialization.
Exports configuration, logging and security utilities.
"""

from foodie.core.config import get_settings, setup_logging, Settings, EnvironmentMode

__all__ = ["get_settings", "setup_logging", "Settings", "EnvironmentMode"]
