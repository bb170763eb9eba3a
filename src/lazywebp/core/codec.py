from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from PIL import Image, ImageCms, ImageOps

WEBP_EFFORT = 6
SRGB = "srgb"
CONVERTIBLE_COLOR_SPACES = {"rgb", "display-p3"}

GRAYSCALE_MODES = {"1", "L", "LA", "I", "I;16", "F"}


@dataclass(frozen=True, slots=True)
class ImageInfo:
    color_space: str
    width: int
    height: int
    format: str | None = None


@dataclass(frozen=True, slots=True)
class EncodeOptions:
    quality: int
    auto_rotate: bool = True
    target_color_space: str | None = None
    effort: int = WEBP_EFFORT
    alpha_quality: int = 100
    lossless: bool = False


class ImageCodec(Protocol):
    def probe(self, input_path: Path) -> ImageInfo: ...

    def encode(self, input_path: Path, options: EncodeOptions) -> bytes: ...


def build_encode_options(quality: int, info: ImageInfo) -> EncodeOptions:
    target = SRGB if info.color_space in CONVERTIBLE_COLOR_SPACES else None
    return EncodeOptions(quality=quality, target_color_space=target)


def _icc_profile(image: Image.Image) -> ImageCms.ImageCmsProfile | None:
    icc = image.info.get("icc_profile")
    if not icc:
        return None
    try:
        return ImageCms.ImageCmsProfile(io.BytesIO(icc))
    except (OSError, ImageCms.PyCMSError):
        return None


def detect_color_space(image: Image.Image) -> str:
    if image.mode == "CMYK":
        return "cmyk"
    if image.mode == "LAB":
        return "lab"
    if image.mode in GRAYSCALE_MODES:
        return "b-w"

    profile = _icc_profile(image)
    if profile is None:
        return SRGB

    try:
        description = ImageCms.getProfileDescription(profile).strip().lower()
    except ImageCms.PyCMSError:
        return SRGB

    if "srgb" in description:
        return SRGB
    if "p3" in description:
        return "display-p3"
    return "rgb"


def _to_8bit(image: Image.Image) -> Image.Image:
    if image.mode.startswith("I;16"):
        image = image.convert("I")

    # Pillow clips I and F pixels at 255 when converting to L.
    if image.mode == "I":
        return image.point(lambda value: value * (1 / 256)).convert("L")
    if image.mode == "F":
        _, high = image.getextrema()
        scale = 255 if high <= 1.0 else 1
        return image.point(lambda value: value * scale).convert("L")
    return image


def _normalize_mode(image: Image.Image) -> Image.Image:
    if image.mode in ("RGB", "RGBA"):
        return image
    image = _to_8bit(image)
    return image.convert("RGBA" if image.has_transparency_data else "RGB")


def _to_srgb(image: Image.Image) -> Image.Image:
    profile = _icc_profile(image)
    image = _normalize_mode(image)
    if profile is None:
        return image

    converted = ImageCms.profileToProfile(
        image,
        profile,
        ImageCms.createProfile("sRGB"),
        outputMode=image.mode,
    )
    converted.info.pop("icc_profile", None)
    return converted


class PillowWebPCodec:
    def probe(self, input_path: Path) -> ImageInfo:
        with Image.open(input_path) as image:
            return ImageInfo(
                color_space=detect_color_space(image),
                width=image.width,
                height=image.height,
                format=image.format,
            )

    def encode(self, input_path: Path, options: EncodeOptions) -> bytes:
        with Image.open(input_path) as image:
            image.load()
            prepared: Image.Image = image
            if options.auto_rotate:
                prepared = ImageOps.exif_transpose(prepared)
            if options.target_color_space == SRGB:
                prepared = _to_srgb(prepared)
            prepared = _normalize_mode(prepared)

            buffer = io.BytesIO()
            prepared.save(
                buffer,
                format="WEBP",
                quality=options.quality,
                method=options.effort,
                alpha_quality=options.alpha_quality,
                lossless=options.lossless,
            )
            return buffer.getvalue()
