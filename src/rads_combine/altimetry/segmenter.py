"""Pass segmentation of a granule stream.

The segmenter is a single sequential state machine holding three pieces of
state: the key of the pass being assembled, the run-wide time watermark and
the buffer of spans for that pass. Granules are fed in stream order; they
may overlap or repeat each other, and the watermark drops any time that
was already accepted.

Within a granule a pass ends where the latitude trend turns against the
direction expected for the current pass number. Records that repeat the
time of their predecessor are dropped.
"""

from dataclasses import dataclass
import logging

import numpy as np

from rads_combine.altimetry.buffer import SegmentBuffer, SourceSpan, SourceRecord, SourceHandlePool
from rads_combine.altimetry.orbit import (
    SegmentKey,
    normalize_key,
    next_key,
    expects_ascending,
    format_time,
)
from rads_combine.contracts import assert_watermark_advances

__all__ = ['PassSegmenter', 'ConsumeResult', 'audit_line']

logger = logging.getLogger(__name__)


def audit_line(word: str, rec0: int, rec1: int, nrec: int, time0: str, time1: str,
               direction: str, name) -> str:
    """One line of the run audit: what happened to which records of which file."""
    return f"{word:<8s} : {rec0:6d}{rec1:6d}{nrec:6d} : {time0} - {time1} {direction} {name}"


@dataclass
class ConsumeResult:
    """What the segmenter did with one granule."""
    source_id: str
    nrec: int
    accepted: int = 0
    covered: int = 0
    duplicates: int = 0
    boundaries: int = 0
    spans: int = 0


class PassSegmenter:
    """Cut a stream of granules into passes.

    Parameters
    ----------
    config : InternalConfig
        Uses ``config.combiner`` (passes_per_cycle, max_open_sources,
        odd_pass_ascending) and ``config.mission.epoch`` for log lines.
    writer : PassWriter
        Anything with ``flush(key, buffer) -> FlushResult``.
    pool : SourceHandlePool
        Pool that receives granules with nothing left to contribute.

    Notes
    -----
    The writer is responsible for releasing granules whose final span it
    flushed; the segmenter only releases granules that contribute no record.

    Examples
    --------
    >>> segmenter = PassSegmenter(config, writer, pool)
    >>> for record in records:
    ...     segmenter.consume(record)
    >>> segmenter.finish()
    """

    def __init__(self, config, writer, pool: SourceHandlePool):
        cfg = config.combiner
        self.passes_per_cycle = cfg.passes_per_cycle
        self.odd_pass_ascending = cfg.odd_pass_ascending
        self.epoch = config.mission.epoch
        self.writer = writer
        self.pool = pool

        self.current_key = SegmentKey(0, 0)
        self.watermark = -np.inf
        self.buffer = SegmentBuffer(cfg.max_open_sources)
        self.results = []

    def _log(self, word, rec0, rec1, source: SourceRecord):
        logger.info(audit_line(
            word, rec0, rec1, source.nrec,
            format_time(source.time[rec0], self.epoch),
            format_time(source.time[rec1], self.epoch),
            "<", source.source_id,
        ))

    def flush(self):
        """Hand the buffered pass to the writer and start an empty buffer."""
        if not self.buffer:
            return None
        result = self.writer.flush(self.current_key, self.buffer)
        self.buffer.clear()
        if result is not None:
            self.results.append(result)
        return result

    def _seal(self, source: SourceRecord, rec0: int, rec1: int, outcome: ConsumeResult):
        if rec1 < rec0:
            return
        self.buffer.append(SourceSpan.from_record(source, rec0, rec1))
        outcome.accepted += rec1 - rec0 + 1
        outcome.spans += 1
        self._log(".. input", rec0, rec1, source)

    def consume(self, source: SourceRecord) -> ConsumeResult:
        """Segment one granule, flushing every pass it completes."""
        outcome = ConsumeResult(source.source_id, source.nrec)
        if source.nrec == 0:
            logger.info("No records, skipped: %s", source.source_id)
            self.pool.release(source)
            return outcome

        key = normalize_key(source.cycle_number, source.pass_number, self.passes_per_cycle)
        if key.ordinal(self.passes_per_cycle) > self.current_key.ordinal(self.passes_per_cycle):
            self.flush()
            self.current_key = key

        time = source.time
        lat = source.lat
        n = source.nrec

        # Advance to beyond the watermark
        after = time > self.watermark
        if not after.any():
            outcome.covered = n
            self._log("... skip", 0, n - 1, source)
            logger.info("All records already covered: %s", source.source_id)
            self.pool.release(source)
            return outcome
        i0 = int(np.argmax(after))
        if i0 > 0:
            outcome.covered = i0
            self._log("... skip", 0, i0 - 1, source)

        new_watermark = max(self.watermark, float(time[-1]))
        assert_watermark_advances(self.watermark, new_watermark)
        self.watermark = new_watermark

        duplicate = np.zeros(n, dtype=bool)
        rising = np.zeros(n, dtype=bool)
        duplicate[1:] = time[1:] == time[:-1]
        rising[1:] = lat[1:] > lat[:-1]

        for i in range(max(1, i0), n):
            if duplicate[i]:
                self._seal(source, i0, i - 2, outcome)
                self._log("... skip", i - 1, i - 1, source)
                outcome.duplicates += 1
                i0 = i
            elif rising[i] != expects_ascending(self.current_key, self.odd_pass_ascending):
                self._seal(source, i0, i - 1, outcome)
                self.flush()
                outcome.boundaries += 1
                i0 = i
                self.current_key = next_key(self.current_key, self.passes_per_cycle)
        self._seal(source, i0, n - 1, outcome)
        return outcome

    def finish(self):
        """Flush whatever is left at the end of the stream."""
        return self.flush()
