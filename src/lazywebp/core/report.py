from __future__ import annotations

import math

from lazywebp.core.models import ConversionResult
from lazywebp.core.stats import RunStatistics

BYTE_UNITS = ["B", "KB", "MB", "GB"]


def format_bytes(byte_count: int) -> str:
    sign = "-" if byte_count < 0 else ""
    value = float(abs(byte_count))
    unit_index = 0

    while value >= 1024 and unit_index < len(BYTE_UNITS) - 1:
        value /= 1024
        unit_index += 1

    if unit_index == 0:
        return f"{sign}{int(value)} B"
    return f"{sign}{value:.2f} {BYTE_UNITS[unit_index]}"


def format_duration(seconds: float) -> str:
    whole_seconds = max(0, math.floor(seconds))
    minutes = whole_seconds // 60
    if minutes > 0:
        return f"{minutes}m {whole_seconds % 60}s"
    return f"{whole_seconds}s"


def format_compression_ratio(saved_bytes: int, total_input_bytes: int) -> str:
    if total_input_bytes <= 0:
        return "0%"
    return f"{saved_bytes / total_input_bytes * 100:.2f}%"


def format_progress(completed: int, total: int, saved_bytes: int) -> str:
    return f"Progress: {completed}/{total} (saved {format_bytes(saved_bytes)})"


def finalize(stats: RunStatistics, cancelled: bool = False) -> ConversionResult:
    elapsed = stats.elapsed_seconds
    return ConversionResult(
        total_files=stats.total_files,
        processed=stats.processed,
        skipped=stats.skipped,
        failed=tuple(stats.failed),
        duration=format_duration(elapsed),
        total_size=format_bytes(stats.total_input_bytes),
        saved_size=format_bytes(stats.saved_bytes),
        compression_ratio=format_compression_ratio(stats.saved_bytes, stats.total_input_bytes),
        total_input_bytes=stats.total_input_bytes,
        saved_bytes=stats.saved_bytes,
        elapsed_seconds=elapsed,
        cancelled=cancelled,
    )
