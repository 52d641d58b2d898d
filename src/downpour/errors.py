"""Run-level errors. Per-request failures never surface as exceptions."""

from typing import Any


class DownpourError(Exception):
    """Base class for everything downpour raises on purpose."""


class FatalSetupError(DownpourError):
    """Raised before any request is issued; the run is aborted."""


class CorpusError(FatalSetupError):
    pass


class MemorySampleError(FatalSetupError):
    pass


class FatalTeardownError(DownpourError):
    """The requests completed but the final memory sample failed.

    ``result`` holds the partial run result (request statistics without the
    final memory reading) so callers can still report it.
    """

    def __init__(self, message: str, result: Any = None) -> None:
        super().__init__(message)
        self.result = result
