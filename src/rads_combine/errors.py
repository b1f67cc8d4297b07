"""Error taxonomy for the pass combiner.

Source-scoped errors (``SourceError`` subclasses) are recovered by skipping
the offending granule and continuing the stream. ``ResourceExhausted`` and
``WriteFailure`` abort the run: partial output state cannot be reconciled.
"""


class CombineError(RuntimeError):
    """Base class for all pass combiner errors."""


class SourceError(CombineError):
    """A single input granule could not be used. The run continues."""

    def __init__(self, source_id: str, reason: str):
        self.source_id = str(source_id)
        self.reason = reason
        super().__init__(f"{reason}: {source_id}")


class SourceOpenError(SourceError):
    """Granule could not be opened or lacks required metadata."""


class IdentityMismatch(SourceError):
    """Granule belongs to another mission than the one fixed for this run."""


class SizeLimitExceeded(SourceError):
    """Granule holds more records than the configured maximum."""


class MissingTimeDimension(SourceError):
    """Granule has no time dimension of the configured name."""


class ResourceExhausted(CombineError):
    """Too many spans buffered or too many granules held open."""


class WriteFailure(CombineError):
    """Creating, defining, writing or closing a pass file failed."""
