from __future__ import annotations

import threading
import time
from pathlib import Path

import pytest
from PIL import Image

from lazywebp.core.codec import EncodeOptions, ImageInfo

FAKE_WEBP = b"RIFF\x1a\x00\x00\x00WEBPVP8 fake-payload"


def create_image(
    path: Path,
    image_format: str = "PNG",
    size: tuple[int, int] = (10, 10),
    color: tuple[int, ...] = (255, 0, 0),
    mode: str = "RGB",
) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new(mode, size, color).save(path, format=image_format)
    return path


@pytest.fixture
def make_image():
    return create_image


class FakeCodec:
    def __init__(self, color_space: str = "srgb", payload: bytes = FAKE_WEBP) -> None:
        self.color_space = color_space
        self.payload = payload
        self.options: list[EncodeOptions] = []
        self._lock = threading.Lock()

    def probe(self, input_path: Path) -> ImageInfo:
        return ImageInfo(color_space=self.color_space, width=10, height=10, format="PNG")

    def encode(self, input_path: Path, options: EncodeOptions) -> bytes:
        with self._lock:
            self.options.append(options)
        return self.payload


class FailingCodec(FakeCodec):
    def encode(self, input_path: Path, options: EncodeOptions) -> bytes:
        raise RuntimeError("decoder exploded")


class InstrumentedCodec(FakeCodec):
    def __init__(self, delay: float = 0.02) -> None:
        super().__init__()
        self.delay = delay
        self.in_flight = 0
        self.max_in_flight = 0
        self.events: list[tuple[str, str]] = []

    def encode(self, input_path: Path, options: EncodeOptions) -> bytes:
        with self._lock:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
            self.events.append(("start", input_path.name))
        try:
            time.sleep(self.delay)
            return self.payload
        finally:
            with self._lock:
                self.in_flight -= 1
                self.events.append(("end", input_path.name))


@pytest.fixture
def fake_codec() -> FakeCodec:
    return FakeCodec()


def write_placeholder(path: Path, content: bytes = b"not really an image") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    return path


def temp_leftovers(directory: Path) -> list[Path]:
    return [path for path in directory.rglob(".lazywebp-*")]
