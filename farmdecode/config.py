"""Default paths and logging setup for the FARM tools."""
from __future__ import annotations

import logging
import sys
from pathlib import Path

from farmdecode.farm.constants import FARM_FILE_LABEL, FARM_SUBDIR

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
DEFAULT_LOG_LEVEL = "WARNING"


def farm_file_in(database: Path) -> Path:
    """Where a terrain database keeps its FARM file: <db>/otf/farm.dat."""
    return database / FARM_SUBDIR / FARM_FILE_LABEL


def derive_farm_path(target: Path) -> Path:
    """Resolve a terrain database directory to its FARM file.

    A path that is not a directory is taken to be the FARM file itself.
    """
    if target.is_dir():
        return farm_file_in(target)
    return target


def derive_output_path(farm: Path, fmt: str) -> Path:
    """Default export path: next to the FARM file, with the format as suffix."""
    return farm.with_name(f"{farm.name}.{fmt}")


def configure_logging(level: str | int = DEFAULT_LOG_LEVEL, log_file: Path | None = None) -> None:
    """Send farmdecode logs to stderr (and optionally a file)."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    root = logging.getLogger("farmdecode")
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)
    stream = logging.StreamHandler(sys.stderr)
    stream.setFormatter(formatter)
    root.addHandler(stream)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setFormatter(formatter)
        fh.setLevel(logging.DEBUG)
        root.addHandler(fh)
        # The file gets everything; stderr keeps the requested level
        stream.setLevel(level)
        root.setLevel(logging.DEBUG)
