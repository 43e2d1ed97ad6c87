"""Command line state: the config path chosen by `--config` and the loaded config."""

from __future__ import annotations

from pathlib import Path

from .config import DEFAULT_CONFIG_FILENAME, EngineConfig, load_config
from .logger import get_logger

logger = get_logger()


class _Context:
    """State shared between the CLI callback and its commands."""

    def __init__(self) -> None:
        self.config_path: Path | None = None
        self.config: EngineConfig | None = None


# Singleton instance
_context = _Context()


def get_config_path() -> Path | None:
    """Get the config path given on the command line."""
    return _context.config_path


def set_config_path(path: Path | None) -> None:
    """Set the config path; the next `get_config()` reloads."""
    _context.config_path = path
    _context.config = None


def get_config(search_dir: Path | None = None) -> EngineConfig:
    """Configuration for the current command, loaded once.

    An explicit `--config` path must exist. Otherwise eyelove_config.yaml is
    looked up in `search_dir` and then the working directory, and the
    defaults apply when neither has one.

    Raises:
        FileNotFoundError: If the explicit config path doesn't exist
        ConfigError: If the config file is invalid
    """
    if _context.config is not None:
        return _context.config

    path = _context.config_path
    if path is None:
        candidates = [Path(DEFAULT_CONFIG_FILENAME)]
        if search_dir is not None:
            candidates.insert(0, search_dir / DEFAULT_CONFIG_FILENAME)
        path = next((c for c in candidates if c.exists()), None)

    if path is None:
        _context.config = EngineConfig()
    else:
        logger.checks(f"Loading config from {path}")
        _context.config = load_config(path)
    return _context.config
