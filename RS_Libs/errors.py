"""
Exception types for Raster Studio.

Transcoder failures are caught where the engines call the adapter and turned
into one of these (or into a notice); raw engine errors never reach callers.

Classes:
    RasterStudioError: Base class for all editing engine errors
    EngineUnavailableError: The transcoding engine failed to initialize
    TranscoderBusyError: Another pipeline holds the transcoder's file system
    TranscodeError: A transcoder command failed or produced no output
    ResourceRevokedError: A released frame resource was referenced
    MalformedInputError: Input bytes or media type cannot be loaded
    NoImageLoadedError: An edit was requested before anything was loaded
"""

from typing import Optional


class RasterStudioError(Exception):
    """Base class for editing engine errors."""


class EngineUnavailableError(RasterStudioError):
    """The transcoding engine could not be loaded for this process."""


class TranscoderBusyError(RasterStudioError):
    """A transcoding pipeline is already running against the shared file system."""

    def __init__(self, active: str, requested: str):
        super().__init__(
            f"Transcoder is busy with '{active}'; rejected '{requested}'"
        )
        self.active = active
        self.requested = requested


class TranscodeError(RasterStudioError):
    """A transcoder command returned a failure status or its output is unusable."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class ResourceRevokedError(RasterStudioError):
    """A revocable frame resource was used after being released."""

    def __init__(self, handle: str):
        super().__init__(f"Frame resource has been revoked: {handle}")
        self.handle = handle


class MalformedInputError(RasterStudioError):
    """Input rejected before any engine state changed."""


class NoImageLoadedError(RasterStudioError):
    """The operation needs a loaded image."""
