"""Tests for the pass segmentation state machine.

Records are built in memory and flushes go to a recording writer, so no
files are involved.
"""

import logging
from dataclasses import dataclass

import numpy as np
import pytest

from rads_combine.altimetry.buffer import SourceHandlePool
from rads_combine.altimetry.orbit import SegmentKey
from rads_combine.altimetry.segmenter import PassSegmenter, audit_line
from rads_combine.errors import ResourceExhausted

from tests.helpers.fake_granule import make_record

pytestmark = pytest.mark.unit


@dataclass
class Flushed:
    key: SegmentKey
    spans: list
    nrec: int
    action: str = "created"


class RecordingWriter:
    """Stands in for PassWriter; remembers every flushed buffer."""

    def __init__(self):
        self.flushed = []

    def flush(self, key, buffer):
        result = Flushed(key, [(s.source_id, s.rec0, s.rec1) for s in buffer], buffer.record_count)
        self.flushed.append(result)
        return result


@pytest.fixture
def pool():
    return SourceHandlePool(20)


@pytest.fixture
def writer():
    return RecordingWriter()


@pytest.fixture
def segmenter(internal_config, writer, pool):
    return PassSegmenter(internal_config, writer, pool)


def consume(segmenter, pool, record):
    pool.acquire(record)
    return segmenter.consume(record)


class TestDuplicates:

    def test_duplicate_time_drops_first_of_pair(self, segmenter, pool, writer):
        # odd pass, latitude decreasing
        rec = make_record([0, 1, 2, 2, 3], [12, 11, 10, 10, 9], pass_number=241, source_id="a.nc")
        outcome = consume(segmenter, pool, rec)
        segmenter.finish()

        assert outcome.duplicates == 1
        assert outcome.accepted == 4
        assert writer.flushed[0].spans == [("a.nc", 0, 1), ("a.nc", 3, 4)]
        assert writer.flushed[0].nrec == 4

    def test_duplicate_right_after_watermark(self, segmenter, pool, writer):
        consume(segmenter, pool, make_record([0, 1, 2], [12, 11, 10], pass_number=241, source_id="a.nc"))
        outcome = consume(segmenter, pool, make_record([2, 3, 3, 4], [10, 9, 9, 8],
                                                       pass_number=241, source_id="b.nc"))
        segmenter.finish()

        assert outcome.covered == 1
        assert outcome.duplicates == 1
        spans = writer.flushed[0].spans
        assert spans == [("a.nc", 0, 2), ("b.nc", 2, 3)]


class TestBoundaries:

    def test_latitude_reversal_closes_pass(self, segmenter, pool, writer):
        rec = make_record([0, 1, 2, 3, 4, 5], [5, 3, 1, -1, 0, 2], pass_number=241, source_id="a.nc")
        outcome = consume(segmenter, pool, rec)
        assert outcome.boundaries == 1
        assert [f.key for f in writer.flushed] == [SegmentKey(15, 241)]
        assert writer.flushed[0].spans == [("a.nc", 0, 3)]
        assert segmenter.current_key == SegmentKey(15, 242)

        segmenter.finish()
        assert writer.flushed[1].key == SegmentKey(15, 242)
        assert writer.flushed[1].spans == [("a.nc", 4, 5)]

    def test_even_pass_expects_rising_latitude(self, segmenter, pool, writer):
        rec = make_record([0, 1, 2, 3], [1, 2, 3, 2], pass_number=242, source_id="a.nc")
        consume(segmenter, pool, rec)
        segmenter.finish()
        assert [(f.key, f.spans) for f in writer.flushed] == [
            (SegmentKey(15, 242), [("a.nc", 0, 2)]),
            (SegmentKey(15, 243), [("a.nc", 3, 3)]),
        ]

    def test_boundary_at_cycle_end_rolls_over(self, segmenter, pool, writer):
        rec = make_record([0, 1, 2], [1, 2, 1], cycle=15, pass_number=770, source_id="a.nc")
        consume(segmenter, pool, rec)
        segmenter.finish()
        assert [f.key for f in writer.flushed] == [SegmentKey(15, 770), SegmentKey(16, 1)]

    def test_flipped_convention(self, make_config, pool, writer):
        seg = PassSegmenter(make_config(odd_pass_ascending=True), writer, pool)
        rec = make_record([0, 1, 2, 3], [1, 2, 3, 2], pass_number=241, source_id="a.nc")
        pool.acquire(rec)
        outcome = seg.consume(rec)
        seg.finish()
        assert outcome.boundaries == 1
        assert writer.flushed[0].spans == [("a.nc", 0, 2)]


class TestWatermark:

    def test_records_at_or_before_watermark_are_skipped(self, segmenter, pool, writer):
        a = make_record(np.arange(90, 101), np.linspace(60, 50, 11), pass_number=241, source_id="a.nc")
        consume(segmenter, pool, a)
        assert segmenter.watermark == 100

        b = make_record([98, 99, 100, 101, 102], [49.8, 49.6, 49.4, 49.2, 49.0],
                        pass_number=241, source_id="b.nc")
        outcome = consume(segmenter, pool, b)
        segmenter.finish()

        assert outcome.covered == 3
        assert outcome.accepted == 2
        assert writer.flushed[0].spans == [("a.nc", 0, 10), ("b.nc", 3, 4)]
        assert segmenter.watermark == 102

    def test_fully_covered_source_is_released(self, segmenter, pool, writer):
        consume(segmenter, pool, make_record([0, 1, 2], [3, 2, 1], pass_number=241, source_id="a.nc"))
        b = make_record([1, 2], [2, 1], pass_number=241, source_id="b.nc")
        outcome = consume(segmenter, pool, b)

        assert outcome.covered == 2
        assert outcome.accepted == 0
        assert b not in pool
        assert len(segmenter.buffer) == 1

    def test_same_source_twice_adds_nothing(self, segmenter, pool, writer):
        consume(segmenter, pool, make_record([0, 1, 2], [3, 2, 1], pass_number=241, source_id="a.nc"))
        consume(segmenter, pool, make_record([0, 1, 2], [3, 2, 1], pass_number=241, source_id="a.nc"))
        segmenter.finish()
        assert writer.flushed[0].nrec == 3

    def test_watermark_never_decreases(self, segmenter, pool):
        marks = []
        for i, times in enumerate(([10, 11, 12], [5, 6, 7], [11, 12, 13])):
            consume(segmenter, pool, make_record(times, [3, 2, 1], pass_number=241, source_id=f"{i}.nc"))
            marks.append(segmenter.watermark)
        assert marks == [12, 12, 13]


class TestKeys:

    def test_higher_key_flushes_previous_pass(self, segmenter, pool, writer):
        consume(segmenter, pool, make_record([0, 1], [2, 1], pass_number=241, source_id="a.nc"))
        consume(segmenter, pool, make_record([10, 11], [2, 1], pass_number=243, source_id="b.nc"))
        assert [f.key for f in writer.flushed] == [SegmentKey(15, 241)]
        assert segmenter.current_key == SegmentKey(15, 243)

    def test_lower_key_joins_current_pass(self, segmenter, pool, writer):
        consume(segmenter, pool, make_record([0, 1], [2, 1], pass_number=241, source_id="a.nc"))
        consume(segmenter, pool, make_record([2, 3], [0, -1], pass_number=240, source_id="b.nc"))
        segmenter.finish()
        assert len(writer.flushed) == 1
        assert writer.flushed[0].key == SegmentKey(15, 241)
        assert writer.flushed[0].nrec == 4

    def test_raw_pass_beyond_cycle_is_normalized(self, segmenter, pool):
        consume(segmenter, pool, make_record([0, 1], [2, 1], cycle=5, pass_number=771))
        assert segmenter.current_key == SegmentKey(6, 1)


class TestBookkeeping:

    def test_flushed_records_match_accepted(self, segmenter, pool, writer):
        # six granules of 30 s overlapping by 5 s, each with one repeated time
        accepted = 0
        t = 0.0
        for i in range(6):
            times = t + np.arange(30, dtype=float)
            times[10] = times[9]
            lat = 50 - np.arange(30, dtype=float)
            accepted += consume(segmenter, pool, make_record(
                times, lat, pass_number=241, source_id=f"{i}.nc")).accepted
            t += 25.0
        segmenter.finish()
        assert accepted == 149
        assert sum(f.nrec for f in writer.flushed) == accepted
        for f in writer.flushed:
            assert f.nrec == sum(r1 - r0 + 1 for _, r0, r1 in f.spans)

    def test_empty_source_is_released(self, segmenter, pool, writer):
        rec = make_record([], [], pass_number=241)
        outcome = consume(segmenter, pool, rec)
        assert outcome.accepted == 0
        assert rec not in pool
        assert segmenter.current_key == SegmentKey(0, 0)

    def test_too_many_spans_for_one_pass(self, make_config, pool, writer):
        seg = PassSegmenter(make_config(combiner={"max_open_sources": 3}), writer, pool)
        with pytest.raises(ResourceExhausted):
            for i in range(4):
                rec = make_record([float(i)], [1.0], pass_number=241, source_id=f"{i}.nc")
                pool.acquire(rec)
                seg.consume(rec)

    def test_finish_on_empty_buffer_writes_nothing(self, segmenter, writer):
        assert segmenter.finish() is None
        assert writer.flushed == []


class TestAuditLog:

    def test_audit_line_layout(self):
        line = audit_line("... skip", 0, 2, 10, "2017-01-01 00:00:00.000000",
                          "2017-01-01 00:00:02.000000", "<", "a.nc")
        assert line == ("... skip :      0     2    10 : 2017-01-01 00:00:00.000000 - "
                        "2017-01-01 00:00:02.000000 < a.nc")

    def test_skip_and_input_are_logged(self, segmenter, pool, caplog):
        caplog.set_level(logging.INFO, logger="rads_combine.altimetry.segmenter")
        consume(segmenter, pool, make_record([0, 1, 1, 2], [3, 2, 2, 1], pass_number=241, source_id="a.nc"))
        messages = [r.getMessage() for r in caplog.records]
        assert any(m.startswith("... skip :      1     1") for m in messages)
        assert any(m.startswith(".. input :      0     0") for m in messages)
        assert any(m.startswith(".. input :      2     3") for m in messages)
