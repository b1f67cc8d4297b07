"""Tests for spans, the segment buffer and the source handle pool."""

import pytest

from rads_combine.altimetry.buffer import SourceSpan, SegmentBuffer, SourceHandlePool
from rads_combine.contracts import ContractViolation
from rads_combine.errors import ResourceExhausted

from tests.helpers.fake_granule import make_record

pytestmark = pytest.mark.unit


class FakeHandle:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


def spans_of(n, length=3):
    """n consecutive non-overlapping spans from n records."""
    spans = []
    for i in range(n):
        t0 = 10.0 * i
        rec = make_record([t0 + k for k in range(length)], [50.0 - k for k in range(length)],
                          source_id=f"g{i}.nc")
        spans.append(SourceSpan.from_record(rec, 0, length - 1))
    return spans


class TestSourceSpan:

    def test_from_record_copies_bounds(self):
        rec = make_record([1.0, 2.0, 3.0, 4.0], [10.0, 9.0, 8.0, 7.0], orbit_type=5)
        span = SourceSpan.from_record(rec, 1, 2)
        assert span.length == 2
        assert (span.time0, span.time1) == (2.0, 3.0)
        assert (span.lat0, span.lat1) == (9.0, 8.0)
        assert span.orbit_type == 5
        assert span.index_slice() == slice(1, 3)
        assert not span.reaches_end
        assert SourceSpan.from_record(rec, 3, 3).reaches_end


class TestSegmentBuffer:

    def test_record_count_is_sum_of_spans(self):
        buf = SegmentBuffer(20)
        for span in spans_of(4):
            buf.append(span)
        assert len(buf) == 4
        assert buf.record_count == 12
        assert buf.first.source_id == "g0.nc"
        assert buf.last.source_id == "g3.nc"

    def test_capacity_exceeded_raises(self):
        buf = SegmentBuffer(3)
        spans = spans_of(4)
        for span in spans[:3]:
            buf.append(span)
        with pytest.raises(ResourceExhausted):
            buf.append(spans[3])
        assert len(buf) == 3

    def test_overlapping_span_violates_contract(self):
        buf = SegmentBuffer(20)
        a, b = spans_of(2)
        buf.append(b)
        with pytest.raises(ContractViolation):
            buf.append(a)

    def test_clear(self):
        buf = SegmentBuffer(20)
        for span in spans_of(2):
            buf.append(span)
        buf.clear()
        assert not buf
        assert buf.record_count == 0


class TestSourceHandlePool:

    def test_acquire_and_release(self):
        pool = SourceHandlePool(2)
        rec = make_record([1.0], [1.0])
        rec.handle = FakeHandle()
        handle = rec.handle
        pool.acquire(rec)
        assert rec in pool
        pool.release(rec)
        assert rec not in pool
        assert handle.closed
        assert rec.handle is None

    def test_release_twice_is_noop(self):
        pool = SourceHandlePool(2)
        rec = make_record([1.0], [1.0])
        pool.acquire(rec)
        pool.release(rec)
        pool.release(rec)
        assert len(pool) == 0

    def test_full_pool_closes_and_raises(self):
        pool = SourceHandlePool(1)
        pool.acquire(make_record([1.0], [1.0]))
        extra = make_record([2.0], [1.0])
        extra.handle = FakeHandle()
        handle = extra.handle
        with pytest.raises(ResourceExhausted):
            pool.acquire(extra)
        assert handle.closed
        assert len(pool) == 1

    def test_same_file_twice_takes_two_slots(self):
        pool = SourceHandlePool(2)
        a = make_record([1.0], [1.0], source_id="same.nc")
        b = make_record([1.0], [1.0], source_id="same.nc")
        pool.acquire(a)
        pool.acquire(b)
        pool.release(a)
        assert b in pool
        assert a not in pool

    def test_release_drained_only_releases_finished_sources(self):
        pool = SourceHandlePool(5)
        rec = make_record([1.0, 2.0, 3.0], [3.0, 2.0, 1.0])
        pool.acquire(rec)
        pool.release_drained([SourceSpan.from_record(rec, 0, 1)])
        assert rec in pool
        pool.release_drained([SourceSpan.from_record(rec, 2, 2)])
        assert rec not in pool

    def test_close_all(self):
        pool = SourceHandlePool(5)
        for i in range(3):
            pool.acquire(make_record([float(i)], [1.0]))
        pool.close_all()
        assert len(pool) == 0
