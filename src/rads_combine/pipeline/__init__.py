"""Run driver and run ledger.

- combiner: PassCombiner, runs a list of granules through reader, segmenter and writer
- ledger: CombineLedger, SQLite audit trail of granules and passes
"""

from rads_combine.pipeline.combiner import PassCombiner, CombineSummary
from rads_combine.pipeline.ledger import CombineLedger

__all__ = ["PassCombiner", "CombineSummary", "CombineLedger"]
