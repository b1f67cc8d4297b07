"""Source records, spans, the segment buffer and the source handle pool.

A granule is read once into a ``SourceRecord`` and then cut into one or more
``SourceSpan`` objects, each a contiguous record range that belongs to one
pass. Spans wait in the ``SegmentBuffer`` until the pass is complete. The
granule stays open in the ``SourceHandlePool`` until the span holding its
last record has been flushed, since the writer reads the span data lazily.
"""

from dataclasses import dataclass, field
from typing import Any, Iterator, Optional
import logging

import numpy as np

from rads_combine.contracts import assert_span_follows
from rads_combine.errors import ResourceExhausted

__all__ = ['SourceRecord', 'SourceSpan', 'SegmentBuffer', 'SourceHandlePool']

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class SourceRecord:
    """One opened granule and the fields needed to segment it.

    ``cycle_number`` and ``pass_number`` are the values after the correction
    hook, before rollover normalization. ``handle`` is the open xarray
    dataset (None for records built in memory).
    """
    source_id: str
    time: np.ndarray
    lat: np.ndarray
    lon: np.ndarray
    cycle_number: int
    pass_number: int
    absolute_pass_number: int = 0
    absolute_rev_number: int = 0
    product_name: str = ""
    mission_name: str = ""
    orbit_type: int = 127
    handle: Optional[Any] = field(default=None, repr=False)

    @property
    def nrec(self) -> int:
        return len(self.time)

    def close(self):
        if self.handle is not None:
            self.handle.close()
            self.handle = None


@dataclass(frozen=True)
class SourceSpan:
    """Contiguous record range ``[rec0, rec1]`` of one granule."""
    source: SourceRecord = field(repr=False, compare=False)
    rec0: int
    rec1: int
    time0: float
    time1: float
    lat0: float
    lat1: float
    lon0: float
    lon1: float
    orbit_type: int

    @classmethod
    def from_record(cls, source: SourceRecord, rec0: int, rec1: int) -> "SourceSpan":
        return cls(
            source=source,
            rec0=rec0,
            rec1=rec1,
            time0=float(source.time[rec0]),
            time1=float(source.time[rec1]),
            lat0=float(source.lat[rec0]),
            lat1=float(source.lat[rec1]),
            lon0=float(source.lon[rec0]),
            lon1=float(source.lon[rec1]),
            orbit_type=source.orbit_type,
        )

    @property
    def source_id(self) -> str:
        return self.source.source_id

    @property
    def length(self) -> int:
        return self.rec1 - self.rec0 + 1

    @property
    def reaches_end(self) -> bool:
        """True when this span holds the last record of its granule."""
        return self.rec1 == self.source.nrec - 1

    def index_slice(self) -> slice:
        return slice(self.rec0, self.rec1 + 1)


class SegmentBuffer:
    """Ordered, bounded collection of spans for the pass not yet written.

    Parameters
    ----------
    capacity : int
        Maximum number of spans (default 20). Appending more raises
        ``ResourceExhausted``.
    """

    def __init__(self, capacity: int = 20):
        self.capacity = capacity
        self._spans: list[SourceSpan] = []
        self.record_count = 0

    def append(self, span: SourceSpan):
        if len(self._spans) >= self.capacity:
            raise ResourceExhausted(
                f"Number of granules too large (> {self.capacity}) for one pass"
            )
        assert_span_follows(self._spans[-1] if self._spans else None, span)
        self._spans.append(span)
        self.record_count += span.length

    def clear(self):
        self._spans = []
        self.record_count = 0

    @property
    def first(self) -> SourceSpan:
        return self._spans[0]

    @property
    def last(self) -> SourceSpan:
        return self._spans[-1]

    def __iter__(self) -> Iterator[SourceSpan]:
        return iter(self._spans)

    def __len__(self) -> int:
        return len(self._spans)

    def __bool__(self) -> bool:
        return bool(self._spans)


class SourceHandlePool:
    """Bounded set of granules held open while their spans are buffered.

    Records are tracked by identity, so the same file listed twice in the
    input stream occupies two slots. The combiner sizes the pool one larger
    than the span buffer so the granule being read can be opened before a
    full pass is flushed.
    """

    def __init__(self, capacity: int = 20):
        self.capacity = capacity
        self._open: list[SourceRecord] = []

    def acquire(self, record: SourceRecord):
        if len(self._open) >= self.capacity:
            record.close()
            raise ResourceExhausted(
                f"Too many granules open (> {self.capacity}) at {record.source_id}"
            )
        self._open.append(record)

    def release(self, record: SourceRecord):
        """Close ``record``. Releasing a record twice is a no-op."""
        for i, held in enumerate(self._open):
            if held is record:
                del self._open[i]
                break
        record.close()
        logger.debug("Released granule: %s", record.source_id)

    def release_drained(self, spans):
        """Release the granules whose final record lies in one of ``spans``."""
        for span in spans:
            if span.reaches_end:
                self.release(span.source)

    def close_all(self):
        for record in list(self._open):
            self.release(record)

    def __contains__(self, record) -> bool:
        return any(held is record for held in self._open)

    def __len__(self) -> int:
        return len(self._open)
