from __future__ import annotations

import logging
import math
import os
import shutil
from dataclasses import dataclass
from pathlib import Path

from lazywebp.core.errors import InsufficientDiskSpace, PreflightError

logger = logging.getLogger(__name__)

SPACE_SAFETY_FACTOR = 1.2


@dataclass(frozen=True, slots=True)
class SpaceCheck:
    required_bytes: int
    available_bytes: float

    @property
    def has_headroom(self) -> bool:
        return self.available_bytes >= self.required_bytes * SPACE_SAFETY_FACTOR


def get_directory_size(directory: Path) -> int:
    total = 0
    for root, _dirs, files in os.walk(directory):
        for name in files:
            try:
                path = Path(root) / name
                if path.is_file():
                    total += path.stat().st_size
            except OSError:
                continue
    return total


def get_available_space(directory: Path) -> float:
    try:
        return float(shutil.disk_usage(directory).free)
    except OSError as error:
        logger.warning("Could not check disk space for %s: %s", directory, error)
        return math.inf


def validate_paths(input_dir: Path, output_dir: Path) -> SpaceCheck:
    if not input_dir.is_dir():
        raise PreflightError(f"Input path is not a directory: {input_dir}")

    if not os.access(input_dir, os.R_OK):
        raise PreflightError(f"Input directory is not readable: {input_dir}")

    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as error:
        raise PreflightError(f"Cannot create output directory {output_dir}: {error}") from error

    if not os.access(output_dir, os.W_OK):
        raise PreflightError(f"Output directory is not writable: {output_dir}")

    check = SpaceCheck(
        required_bytes=get_directory_size(input_dir),
        available_bytes=get_available_space(output_dir),
    )
    logger.debug(
        "Preflight for %s -> %s: %d bytes needed, %s available",
        input_dir,
        output_dir,
        check.required_bytes,
        check.available_bytes,
    )

    if not check.has_headroom:
        raise InsufficientDiskSpace(
            required_bytes=int(check.required_bytes * SPACE_SAFETY_FACTOR),
            available_bytes=int(check.available_bytes),
        )

    return check
