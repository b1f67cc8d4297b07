"""Altimeter granule processing modules.

- reader: Open granules and extract time, position and pass metadata
- corrections: Cycle/pass correction hooks for known product anomalies
- orbit: Pass keys, direction convention, equator crossings
- buffer: Spans, segment buffer and open-granule pool
- segmenter: Pass segmentation state machine
- writer: Idempotent pass file writer
"""

from rads_combine.altimetry.orbit import SegmentKey, RepeatOrbitEphemeris
from rads_combine.altimetry.buffer import SourceRecord, SourceSpan, SegmentBuffer, SourceHandlePool
from rads_combine.altimetry.reader import SourceReader
from rads_combine.altimetry.segmenter import PassSegmenter
from rads_combine.altimetry.writer import PassWriter

__all__ = [
    "SegmentKey",
    "RepeatOrbitEphemeris",
    "SourceRecord",
    "SourceSpan",
    "SegmentBuffer",
    "SourceHandlePool",
    "SourceReader",
    "PassSegmenter",
    "PassWriter",
]
