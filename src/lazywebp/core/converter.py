from __future__ import annotations

import contextlib
import logging
import os
import secrets
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Iterable

from lazywebp.core.codec import ImageCodec, PillowWebPCodec, build_encode_options
from lazywebp.core.discovery import OUTPUT_EXTENSION, TEMP_PREFIX, TaskDiscovery
from lazywebp.core.errors import (
    ConversionCancelled,
    EmptyOutput,
    NoImagesFound,
    PreflightError,
    RefusedSymlinkOverwrite,
)
from lazywebp.core.models import (
    DEFAULT_QUALITY,
    ConversionConfig,
    ConversionResult,
    ConversionTask,
    FileConversionOutcome,
)
from lazywebp.core.report import finalize, format_bytes
from lazywebp.core.skip_policy import should_convert
from lazywebp.core.stats import RunStatistics

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, int], None]
FileDoneCallback = Callable[[ConversionTask, FileConversionOutcome], None]
LogCallback = Callable[[str], None]


def make_temp_path(output_path: Path) -> Path:
    return output_path.parent / f"{TEMP_PREFIX}{secrets.token_hex(8)}{OUTPUT_EXTENSION}"


class ImageConverter:
    def __init__(
        self,
        quality: int = DEFAULT_QUALITY,
        max_concurrency: int | None = None,
        codec: ImageCodec | None = None,
    ) -> None:
        self.config = ConversionConfig(quality=quality, max_concurrency=max_concurrency)
        self.codec: ImageCodec = codec if codec is not None else PillowWebPCodec()
        self.stats = RunStatistics()
        self._cancel_event = threading.Event()
        self._on_log: LogCallback | None = None

    def cancel(self) -> None:
        if not self._cancel_event.is_set():
            self._log("Cancellation requested: finishing in-flight conversions")
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def run(
        self,
        input_path: Path | str,
        output_dir: Path | str | None = None,
        recursive: bool = False,
        on_progress: ProgressCallback | None = None,
        on_file_done: FileDoneCallback | None = None,
        on_log: LogCallback | None = None,
    ) -> ConversionResult:
        return self.run_all(
            [input_path],
            output_dir,
            recursive,
            on_progress=on_progress,
            on_file_done=on_file_done,
            on_log=on_log,
        )

    def run_all(
        self,
        inputs: Iterable[Path | str],
        output_dir: Path | str | None = None,
        recursive: bool = False,
        on_progress: ProgressCallback | None = None,
        on_file_done: FileDoneCallback | None = None,
        on_log: LogCallback | None = None,
    ) -> ConversionResult:
        self.stats = RunStatistics()
        self._cancel_event.clear()
        self._on_log = on_log
        self.stats.start_timer()

        resolved_output = Path(output_dir) if output_dir is not None else None
        if resolved_output is not None:
            try:
                resolved_output.mkdir(parents=True, exist_ok=True)
            except OSError as error:
                raise PreflightError(f"Cannot create output directory {resolved_output}: {error}") from error

        discovery = TaskDiscovery(
            self.stats,
            output_dir=resolved_output,
            recursive=recursive,
            on_log=on_log,
        )
        tasks = discovery.collect(inputs)

        if self.stats.total_files == 0:
            raise NoImagesFound("No valid image files found")

        self._log(
            f"Converting {len(tasks)} image(s) at quality {self.config.quality} "
            f"with up to {self.config.max_concurrency} concurrent conversions"
        )
        self.run_batch(tasks, on_progress=on_progress, on_file_done=on_file_done)

        self.stats.stop_timer()
        if not self.stats.is_reconciled():
            logger.warning(
                "Run totals do not add up: %d total, %d processed, %d skipped, %d failed",
                self.stats.total_files,
                self.stats.processed,
                self.stats.skipped,
                len(self.stats.failed),
            )
        result = finalize(self.stats, cancelled=self.cancelled)
        logger.info(
            "Run finished: %d total, %d processed, %d skipped, %d failed in %s",
            result.total_files,
            result.processed,
            result.skipped,
            len(result.failed),
            result.duration,
        )
        return result

    def run_batch(
        self,
        tasks: list[ConversionTask],
        on_progress: ProgressCallback | None = None,
        on_file_done: FileDoneCallback | None = None,
    ) -> None:
        total = len(tasks)
        wave_size = self.config.max_concurrency

        with ThreadPoolExecutor(max_workers=wave_size, thread_name_prefix="lazywebp") as pool:
            for start in range(0, total, wave_size):
                if self.cancelled:
                    remaining = total - start
                    self.stats.record_skipped(remaining)
                    self._log(f"Cancelled: {remaining} file(s) not started")
                    break

                wave = tasks[start : start + wave_size]
                futures = {
                    pool.submit(self.convert_image, task.input_path, task.output_path): task
                    for task in wave
                }
                for future in as_completed(futures):
                    outcome = future.result()
                    if on_file_done:
                        on_file_done(futures[future], outcome)

                completed = start + len(wave)
                saved = self.stats.saved_so_far()
                logger.debug("Progress: %d/%d, saved %s", completed, total, format_bytes(saved))
                if on_progress:
                    on_progress(completed, total, saved)

    def convert_image(self, input_path: Path, output_path: Path) -> FileConversionOutcome:
        temp_path: Path | None = None

        try:
            if not should_convert(input_path, output_path):
                self.stats.record_skipped()
                logger.debug("Up to date, skipping: %s", input_path)
                return FileConversionOutcome(success=True, skipped=True)

            input_size = input_path.stat().st_size
            candidate = make_temp_path(output_path)
            output_path.parent.mkdir(parents=True, exist_ok=True)

            info = self.codec.probe(input_path)
            options = build_encode_options(self.config.quality, info)
            data = self.codec.encode(input_path, options)

            with candidate.open("xb") as stream:
                temp_path = candidate
                stream.write(data)

            output_size = temp_path.stat().st_size
            if output_size == 0:
                raise EmptyOutput()

            if output_path.is_symlink():
                raise RefusedSymlinkOverwrite()

            if self.cancelled:
                raise ConversionCancelled()

            os.replace(temp_path, output_path)

            self.stats.record_processed(input_size, output_size)
            logger.debug(
                "Converted %s -> %s (%s -> %s)",
                input_path,
                output_path,
                format_bytes(input_size),
                format_bytes(output_size),
            )
            return FileConversionOutcome(success=True)
        except Exception as error:
            if temp_path is not None:
                with contextlib.suppress(OSError):
                    temp_path.unlink()

            message = str(error) or type(error).__name__
            self.stats.record_failure(str(input_path), message)
            self._log(f"Failed: {input_path} ({message})", level=logging.ERROR)
            return FileConversionOutcome(success=False, error=message)

    def _log(self, message: str, level: int = logging.INFO) -> None:
        logger.log(level, message)
        if self._on_log:
            self._on_log(message)


def run_conversion(
    inputs: Iterable[Path | str],
    output_dir: Path | str | None = None,
    quality: int = DEFAULT_QUALITY,
    recursive: bool = False,
    *,
    max_concurrency: int | None = None,
    codec: ImageCodec | None = None,
    on_progress: ProgressCallback | None = None,
    on_file_done: FileDoneCallback | None = None,
    on_log: LogCallback | None = None,
) -> ConversionResult:
    converter = ImageConverter(quality=quality, max_concurrency=max_concurrency, codec=codec)
    return converter.run_all(
        inputs,
        output_dir,
        recursive,
        on_progress=on_progress,
        on_file_done=on_file_done,
        on_log=on_log,
    )
