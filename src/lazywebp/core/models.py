from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_QUALITY = 90
MIN_QUALITY = 1
MAX_QUALITY = 100
MAX_DEFAULT_CONCURRENCY = 4


def clamp_quality(quality: int) -> int:
    return max(MIN_QUALITY, min(int(quality), MAX_QUALITY))


def default_concurrency() -> int:
    cpu_count = os.cpu_count() or 1
    return max(1, min(cpu_count - 1, MAX_DEFAULT_CONCURRENCY))


@dataclass(frozen=True, slots=True)
class ConversionTask:
    input_path: Path
    output_path: Path


@dataclass(frozen=True, slots=True)
class ConversionConfig:
    quality: int = DEFAULT_QUALITY
    max_concurrency: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "quality", clamp_quality(self.quality))
        if self.max_concurrency is None:
            object.__setattr__(self, "max_concurrency", default_concurrency())
        else:
            object.__setattr__(self, "max_concurrency", max(1, int(self.max_concurrency)))


@dataclass(frozen=True, slots=True)
class FailedFile:
    file: str
    error: str


@dataclass(frozen=True, slots=True)
class FileConversionOutcome:
    success: bool
    skipped: bool = False
    error: str | None = None


@dataclass(frozen=True, slots=True)
class ConversionResult:
    total_files: int
    processed: int
    skipped: int
    failed: tuple[FailedFile, ...]
    duration: str
    total_size: str
    saved_size: str
    compression_ratio: str
    total_input_bytes: int = 0
    saved_bytes: int = 0
    elapsed_seconds: float = 0.0
    cancelled: bool = False

    @property
    def has_failures(self) -> bool:
        return bool(self.failed)
