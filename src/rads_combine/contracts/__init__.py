"""Combiner contracts - fail-fast enforcement of stage invariants.

Key principle:
- Pydantic validates config correctness
- Contracts validate combiner correctness
- SourceError subclasses handle bad granules
"""

from rads_combine.contracts.failure import ContractViolation
from rads_combine.contracts.base import require
from rads_combine.contracts.buffer import (
    assert_span_follows,
    assert_buffer_consistent,
    assert_watermark_advances,
)
from rads_combine.contracts.output import assert_pass_dataset

__all__ = [
    "ContractViolation",
    "require",
    "assert_span_follows",
    "assert_buffer_consistent",
    "assert_watermark_advances",
    "assert_pass_dataset",
]
