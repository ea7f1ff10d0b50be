"""
Configuration for off-lattice spaces and package logging.

A configuration is a flat YAML mapping, for example:

    voxel_radius: 5.0e-9
    log_level: INFO

Missing keys fall back to DEFAULT_CONFIG.
"""

import logging
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional, Union

import yaml

from surface_mc.exceptions import InvalidArgument

logger = logging.getLogger(__name__)

# Barycentric components must sum to one within this tolerance
PLANE_TOLERANCE = 1e-10

DEFAULT_CONFIG = {
    'voxel_radius': 5.0e-9,      # [m]
    'log_level': 'WARNING',
}

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


@dataclass(frozen=True)
class SpaceConfig:
    """Settings for building an off-lattice space."""

    voxel_radius: float = DEFAULT_CONFIG['voxel_radius']
    log_level: str = DEFAULT_CONFIG['log_level']

    def __post_init__(self):
        if not self.voxel_radius > 0.0:
            raise InvalidArgument(
                f"voxel_radius must be positive, got {self.voxel_radius}")
        if not isinstance(logging.getLevelName(str(self.log_level).upper()), int):
            raise InvalidArgument(f"Unknown log level '{self.log_level}'")

    def to_dict(self) -> dict:
        return asdict(self)


def load_config(path: Union[str, Path]) -> SpaceConfig:
    """
    Load a SpaceConfig from a YAML file.

    Parameters:
        path: YAML file containing a mapping of config keys

    Returns:
        SpaceConfig with defaults filled in for missing keys
    """
    path = Path(path)
    with open(path, 'r') as f:
        data = yaml.safe_load(f)

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise InvalidArgument(f"Config file {path} must contain a mapping")

    unknown = set(data) - set(DEFAULT_CONFIG)
    if unknown:
        raise InvalidArgument(
            f"Unknown config keys {sorted(unknown)}. "
            f"Available: {list(DEFAULT_CONFIG.keys())}")

    merged = dict(DEFAULT_CONFIG)
    merged.update(data)
    try:
        merged['voxel_radius'] = float(merged['voxel_radius'])
    except (TypeError, ValueError) as e:
        raise InvalidArgument(f"Invalid numeric value in {path}: {e}") from e

    logger.debug(f"Loaded config from {path}: {merged}")
    return SpaceConfig(**merged)


def setup_logging(level: Union[int, str] = logging.WARNING,
                  log_file: Optional[Union[str, Path]] = None) -> logging.Logger:
    """
    Attach a console handler (and optionally a file handler) to the
    package logger.

    Calling it again replaces the handlers installed by a previous call.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    package_logger = logging.getLogger("surface_mc")
    package_logger.setLevel(level)

    for handler in list(package_logger.handlers):
        if getattr(handler, '_surface_mc_handler', False):
            package_logger.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(LOG_FORMAT)
    handlers = [logging.StreamHandler()]
    if log_file is not None:
        handlers.append(logging.FileHandler(str(log_file)))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler._surface_mc_handler = True
        package_logger.addHandler(handler)

    return package_logger
