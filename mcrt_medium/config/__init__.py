"""
Configuration management for medium system runs.

This module provides:
- SimulationConfig: Data class for simulation parameters
- ConfigurationManager: Loading, validation and construction of components
"""

from mcrt_medium.config.settings import SimulationConfig
from mcrt_medium.config.manager import ConfigurationManager, LoadedConfiguration

__all__ = [
    "SimulationConfig",
    "ConfigurationManager",
    "LoadedConfiguration",
]
