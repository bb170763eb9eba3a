from __future__ import annotations

from pathlib import Path


def should_convert(input_path: Path, output_path: Path) -> bool:
    try:
        output_stat = output_path.stat()
        if output_stat.st_size == 0:
            return True
        input_stat = input_path.stat()
    except OSError:
        return True

    return input_stat.st_mtime_ns > output_stat.st_mtime_ns
