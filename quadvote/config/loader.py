"""
Quadvote TOML Configuration Loader

Loads config.toml at startup with environment variable overrides.
Defaults come from ``quadvote.constants`` (which reads ``.env``).

Environment variable mapping:
    [engine] admin              → QV_ADMIN
    [engine] initial_credits    → QV_INITIAL_CREDITS
    [persistence] snapshot_path → QV_SNAPSHOT_PATH
    [logging] level             → QV_LOG_LEVEL
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

try:
    import tomllib as tomli  # Python 3.11+
except ImportError:
    import tomli  # type: ignore[no-redef]

from ..constants import (
    INITIAL_CREDITS,
    LOG_LEVEL,
    QV_ADMIN,
    QV_INITIAL_CREDITS,
    QV_SNAPSHOT_PATH,
)

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _default_credits() -> int:
    try:
        return int(str(QV_INITIAL_CREDITS))
    except ValueError:
        logger.warning("QV_INITIAL_CREDITS=%r is not an integer, using %d",
                       str(QV_INITIAL_CREDITS), INITIAL_CREDITS)
        return INITIAL_CREDITS


@dataclass
class EngineConfig:
    """
    Voting engine configuration.

    Attributes:
        admin:            Identity allowed to register voters, create and
                          execute proposals
        initial_credits:  Credits granted to every voter at registration
        snapshot_path:    JSON snapshot location ("" disables persistence)
        log_level:        Package log level
    """
    admin: str = str(QV_ADMIN)
    initial_credits: int = _default_credits()
    snapshot_path: str = str(QV_SNAPSHOT_PATH)
    log_level: str = str(LOG_LEVEL).upper()

    # --- factories --------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineConfig":
        """Create EngineConfig from a parsed TOML dict."""
        engine = data.get("engine", {})
        persistence = data.get("persistence", {})
        logging_section = data.get("logging", {})
        defaults = cls()
        return cls(
            admin=engine.get("admin", defaults.admin),
            initial_credits=engine.get("initial_credits", defaults.initial_credits),
            snapshot_path=persistence.get("snapshot_path", defaults.snapshot_path),
            log_level=str(logging_section.get("level", defaults.log_level)).upper(),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "EngineConfig":
        """
        Load configuration from a TOML file.

        A missing file is not an error: defaults plus environment overrides
        are used instead.
        """
        path = Path(config_path)
        if not path.exists():
            logger.warning("Config file not found: %s, using defaults", config_path)
            cfg = cls()
            cfg.apply_env()
            return cfg

        with open(path, "rb") as f:
            raw = tomli.load(f)

        cfg = cls.from_dict(raw)
        cfg.apply_env()
        return cfg

    # --- env overrides ----------------------------------------------------

    def apply_env(self) -> None:
        """Override from environment variables."""
        if v := os.environ.get("QV_ADMIN"):
            self.admin = v
        if v := os.environ.get("QV_INITIAL_CREDITS"):
            self.initial_credits = int(v)
        if v := os.environ.get("QV_SNAPSHOT_PATH"):
            self.snapshot_path = v
        if v := os.environ.get("QV_LOG_LEVEL"):
            self.log_level = v.upper()

    # --- validation -------------------------------------------------------

    def validate(self) -> bool:
        """
        Validate the configuration.

        Raises:
            ValueError: on invalid config
        """
        if not self.admin or not self.admin.strip():
            raise ValueError("admin identity must be set ([engine] admin or QV_ADMIN)")
        if not isinstance(self.initial_credits, int) or isinstance(self.initial_credits, bool):
            raise ValueError(f"initial_credits must be an integer, got {self.initial_credits!r}")
        if self.initial_credits < 1:
            raise ValueError("initial_credits must be >= 1")
        if self.log_level not in _LOG_LEVELS:
            raise ValueError(f"Invalid log_level: {self.log_level}")
        return True

    # --- serialisation ----------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "engine": {
                "admin": self.admin,
                "initial_credits": self.initial_credits,
            },
            "persistence": {
                "snapshot_path": self.snapshot_path,
            },
            "logging": {
                "level": self.log_level,
            },
        }


# -----------------------------------------------------------------------
# Convenience function
# -----------------------------------------------------------------------

def load_config(path: Optional[str] = None) -> EngineConfig:
    """
    Load engine configuration.

    Resolution order:
        1. Explicit *path* argument
        2. QV_CONFIG env var
        3. ./config.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("QV_CONFIG", "config.toml")

    return EngineConfig.from_file(path)
