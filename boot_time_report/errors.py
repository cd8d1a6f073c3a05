from __future__ import annotations


class BootTimeError(Exception):
    pass


class CaptureError(BootTimeError, OSError):
    pass


class AccessDeniedError(CaptureError):
    """The memory device could not be opened."""


class MapFailedError(CaptureError):
    """The physical region could not be mapped or copied."""


class BootstageError(BootTimeError, ValueError):
    pass


class InvalidHeaderError(BootstageError):
    pass


class TruncatedBufferError(BootstageError):
    pass


class CapacityExceededError(BootTimeError, RuntimeError):
    pass
