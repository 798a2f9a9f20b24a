"""
Service layer for the Stacker Alert system.

This module contains the configuration service that builds the single
startup configuration shared by all components.
"""

from .config_manager import ConfigurationManager

__all__ = [
    "ConfigurationManager",
]
