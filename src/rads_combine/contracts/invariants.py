"""Formal combiner invariants.

This file documents what each stage MUST guarantee. Use it as a reviewer
anchor and system reference.
"""

COMBINER_INVARIANTS = {
    "reader": [
        "All accepted granules share the mission identity of the first one",
        "Latitude and longitude are returned in degrees",
        "Every rejected granule is closed before the error propagates",
    ],

    "segmenter": [
        "Watermark never decreases during a run",
        "No record with time <= watermark at entry is accepted",
        "Of two records with equal time, the first one is dropped",
        "A latitude trend against the expected direction closes the pass",
    ],

    "buffer": [
        "Spans are strictly time-ordered and non-overlapping",
        "record_count equals the sum of span lengths",
        "At most max_open_sources spans are buffered",
    ],

    "writer": [
        "Output record count equals the sum of span lengths",
        "An existing pass file with >= records is kept unchanged",
        "A granule is closed once its final record has been flushed or kept",
    ],
}
