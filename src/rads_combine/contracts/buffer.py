"""Segment buffer contracts.

Enforce the ordering guarantees the segmenter gives the writer: spans in a
buffer are strictly time-ordered and non-overlapping, the buffered record
count equals the sum of span lengths, and the watermark never moves back.
"""

from rads_combine.contracts.base import require


def assert_span_follows(previous, span) -> None:
    """Enforce that ``span`` may be appended after ``previous``.

    Parameters
    ----------
    previous : SourceSpan or None
        Last span already in the buffer (None for an empty buffer).
    span : SourceSpan
        Span about to be appended.

    Raises
    ------
    ContractViolation
        If the span is empty or does not start strictly after ``previous``.
    """
    require(
        span.rec1 >= span.rec0,
        f"Buffer contract violated: empty span [{span.rec0}, {span.rec1}] "
        f"from {span.source_id}"
    )
    if previous is None:
        return
    require(
        span.time0 > previous.time1,
        f"Buffer contract violated: span starting at {span.time0} does not "
        f"follow span ending at {previous.time1}"
    )


def assert_buffer_consistent(buffer) -> None:
    """Enforce that the buffered record count matches its spans."""
    spans = list(buffer)
    require(
        buffer.record_count == sum(s.length for s in spans),
        f"Buffer contract violated: record_count={buffer.record_count} "
        f"but spans hold {sum(s.length for s in spans)}"
    )
    for prev, span in zip(spans, spans[1:]):
        assert_span_follows(prev, span)


def assert_watermark_advances(old: float, new: float) -> None:
    """Enforce watermark monotonicity."""
    require(
        new >= old,
        f"Watermark contract violated: {new} < {old}"
    )
