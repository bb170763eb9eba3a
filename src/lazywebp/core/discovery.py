from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Iterable

from lazywebp.core.errors import InvalidInputKind
from lazywebp.core.models import ConversionTask
from lazywebp.core.stats import RunStatistics
from lazywebp.core.validation import validate_paths

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".bmp", ".tiff", ".webp"}
OUTPUT_EXTENSION = ".webp"
TEMP_PREFIX = ".lazywebp-"

LogCallback = Callable[[str], None]


def is_image_file(path: Path | str) -> bool:
    return Path(path).suffix.lower() in SUPPORTED_EXTENSIONS


def filter_supported_images(paths: list[Path]) -> list[Path]:
    return [path for path in paths if is_image_file(path)]


def resolve_output_path(input_path: Path, output_dir: Path | None = None) -> Path:
    name = f"{input_path.stem}{OUTPUT_EXTENSION}"
    if output_dir is not None:
        return output_dir / name
    return input_path.parent / name


def is_same_file(input_path: Path, output_path: Path) -> bool:
    return input_path.resolve() == output_path.resolve()


class TaskDiscovery:
    def __init__(
        self,
        stats: RunStatistics,
        output_dir: Path | None = None,
        recursive: bool = False,
        on_log: LogCallback | None = None,
    ) -> None:
        self.stats = stats
        self.output_dir = output_dir
        self.recursive = recursive
        self.on_log = on_log
        self._claimed: dict[Path, Path] = {}

    def collect(self, inputs: Iterable[Path | str]) -> list[ConversionTask]:
        tasks: list[ConversionTask] = []
        self._claimed = {}
        for raw_input in inputs:
            input_path = Path(raw_input)
            if input_path.is_file():
                self._collect_file(input_path, tasks)
            elif input_path.is_dir():
                self._collect_directory(input_path, tasks)
            else:
                raise InvalidInputKind(f"Input is neither a file nor a directory: {input_path}")
        return tasks

    def _collect_file(self, input_path: Path, tasks: list[ConversionTask]) -> None:
        if not is_image_file(input_path):
            self._skip(f"Skipping: not a supported image file: {input_path}")
            return

        output_path = resolve_output_path(input_path, self.output_dir)
        self._add_task(input_path, output_path, tasks)

    def _collect_directory(self, input_dir: Path, tasks: list[ConversionTask]) -> None:
        same_dir = self.output_dir is None
        if not same_dir:
            validate_paths(input_dir, self.output_dir)

        for entry in self._list_files(input_dir):
            if entry.name.startswith(TEMP_PREFIX):
                continue

            if not is_image_file(entry):
                self._skip(f"Skipping: not a supported image file: {entry}")
                continue

            if same_dir:
                output_path = resolve_output_path(entry)
            else:
                relative_dir = entry.parent.relative_to(input_dir)
                output_path = resolve_output_path(entry, self.output_dir / relative_dir)

            self._add_task(entry, output_path, tasks)

    def _list_files(self, directory: Path) -> list[Path]:
        if not self.recursive:
            return sorted(path for path in directory.iterdir() if path.is_file())

        excluded = self.output_dir.resolve() if self.output_dir is not None else None
        files: list[Path] = []
        for root, dirs, names in os.walk(directory):
            root_path = Path(root)
            dirs.sort()
            if excluded is not None:
                dirs[:] = [name for name in dirs if (root_path / name).resolve() != excluded]
            files.extend(root_path / name for name in sorted(names) if (root_path / name).is_file())
        return files

    def _add_task(self, input_path: Path, output_path: Path, tasks: list[ConversionTask]) -> None:
        if is_same_file(input_path, output_path):
            self._skip(f"Skipping: source and output are the same file: {input_path}")
            return

        claimed_key = output_path.resolve()
        previous = self._claimed.get(claimed_key)
        if previous is not None:
            self._warn(f"Output {output_path} is claimed by both {previous} and {input_path}")
        else:
            self._claimed[claimed_key] = input_path

        self.stats.add_task()
        tasks.append(ConversionTask(input_path=input_path, output_path=output_path))

    def _warn(self, message: str) -> None:
        logger.warning(message)
        if self.on_log:
            self.on_log(message)

    def _skip(self, message: str) -> None:
        self._warn(message)
        self.stats.record_advisory_skip()
