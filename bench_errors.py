"""Errors raised by the compression benchmark."""

from typing import Optional


class CodecError(ValueError):
    """gzip or zstd rejected malformed or truncated input."""

    def __init__(self, message: str, name: Optional[str] = None):
        if name is not None:
            message = f"{name}: {message}"
        super().__init__(message)
        self.name = name


class FramingError(ValueError):
    """Archive length fields don't agree with the decompressed stream."""

    def __init__(self, message: str, frame_index: Optional[int] = None):
        if frame_index is not None:
            message = f"frame {frame_index}: {message}"
        super().__init__(message)
        self.frame_index = frame_index


class PhaseError(RuntimeError):
    """A benchmark phase aborted. The underlying error is chained as __cause__."""

    def __init__(self, phase: str, name: Optional[str] = None, detail: str = ""):
        where = f"{phase} ({name})" if name else phase
        super().__init__(f"{where} failed: {detail}" if detail else f"{where} failed")
        self.phase = phase
        self.name = name
