from __future__ import annotations


class ConversionError(Exception):
    """Base class for every error raised by the conversion engine."""


class InvalidInputKind(ConversionError):
    pass


class NoImagesFound(ConversionError):
    pass


class PreflightError(ConversionError):
    pass


class InsufficientDiskSpace(PreflightError):
    def __init__(self, required_bytes: int, available_bytes: int) -> None:
        super().__init__("Insufficient disk space")
        self.required_bytes = required_bytes
        self.available_bytes = available_bytes


class FileConversionError(ConversionError):
    """Raised for a single file; the converter records it and moves on."""


class EmptyOutput(FileConversionError):
    def __init__(self) -> None:
        super().__init__("Generated file is empty")


class RefusedSymlinkOverwrite(FileConversionError):
    def __init__(self) -> None:
        super().__init__("Output path is a symbolic link: refusing to overwrite")


class ConversionCancelled(FileConversionError):
    def __init__(self) -> None:
        super().__init__("Conversion cancelled")
