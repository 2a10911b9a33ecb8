"""
JSON snapshots of engine state.

A snapshot holds the admin identity, the voter table keyed by identity and
the proposal table keyed by sequential id. Files are written atomically
(temp file + rename) so a crash never leaves a half-written snapshot.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .constants import SNAPSHOT_VERSION
from .governance.events import EventBus
from .governance.voting import VotingEngine
from .logger import get_logger

logger = get_logger(__name__)

PathLike = Union[str, Path]


def dump_snapshot(engine: VotingEngine) -> Dict[str, Any]:
    return {"version": SNAPSHOT_VERSION, **engine.to_dict()}


def restore_snapshot(data: Dict[str, Any], event_bus: Optional[EventBus] = None) -> VotingEngine:
    version = data.get("version")
    if version != SNAPSHOT_VERSION:
        raise ValueError(f"Unsupported snapshot version: {version!r}")
    try:
        return VotingEngine.from_dict(data, event_bus=event_bus)
    except (AttributeError, KeyError, TypeError) as e:
        raise ValueError(f"Malformed snapshot: {e}") from e


def save_snapshot(engine: VotingEngine, path: PathLike) -> Path:
    """Write *engine* state to *path* as JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = dump_snapshot(engine)

    fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, sort_keys=True)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise

    logger.info(
        f"Snapshot saved to {path} "
        f"({len(data['voters'])} voters, {data['proposalCounter']} proposals)"
    )
    return path


def load_snapshot(path: PathLike, event_bus: Optional[EventBus] = None) -> VotingEngine:
    """Restore an engine from a snapshot written by ``save_snapshot``."""
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Snapshot {path} is not valid JSON: {e}") from e

    engine = restore_snapshot(data, event_bus=event_bus)
    logger.info(f"Snapshot loaded from {path}: {engine!r}")
    return engine


def open_engine(config, event_bus: Optional[EventBus] = None) -> VotingEngine:
    """
    Build an engine from an ``EngineConfig``.

    Restores ``config.snapshot_path`` when it exists, otherwise starts
    empty. Also applies ``config.log_level`` to the package logger.
    """
    config.validate()
    package_logger = logging.getLogger("quadvote")
    package_logger.setLevel(config.log_level)
    for handler in package_logger.handlers:
        handler.setLevel(config.log_level)

    if config.snapshot_path and Path(config.snapshot_path).exists():
        engine = load_snapshot(config.snapshot_path, event_bus=event_bus)
        if engine.admin != config.admin:
            raise ValueError(
                f"Snapshot admin {engine.admin} does not match configured admin {config.admin}"
            )
        return engine
    return VotingEngine.from_config(config, event_bus=event_bus)
