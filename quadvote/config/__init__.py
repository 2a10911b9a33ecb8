"""
Quadvote Engine Configuration

Loads config.toml at startup.
Environment variables override TOML values.
"""

from .loader import EngineConfig, load_config

__all__ = [
    "EngineConfig",
    "load_config",
]
