"""Cycle/pass correction hooks applied to granule metadata before keying.

Some production baselines carry wrong cycle numbers over a known period.
Rather than embedding such anomalies in the segmenter, they are described
as data (``CycleCorrectionRule`` in the configuration) and applied through a
hook that defaults to the identity.

The Sentinel-3A REF data of March 2017, for example, is fixed by the rule::

    {"product_slice": (82, 87), "product_match": "MAR_F",
     "max_rev": 5700, "min_cycle": 15, "cycle_offset": -2}
"""

from dataclasses import dataclass
from typing import Callable, Iterable
import logging

__all__ = [
    'GranuleMetadata',
    'CycleCorrection',
    'identity_correction',
    'RuleBasedCorrection',
    'correction_from_config',
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GranuleMetadata:
    """Global attributes of a granule relevant to its pass key."""
    source_id: str
    product_name: str
    cycle_number: int
    pass_number: int
    absolute_pass_number: int
    absolute_rev_number: int


CycleCorrection = Callable[[GranuleMetadata], tuple[int, int]]


def identity_correction(meta: GranuleMetadata) -> tuple[int, int]:
    """Return the raw (cycle, pass) unchanged."""
    return meta.cycle_number, meta.pass_number


class RuleBasedCorrection:
    """Apply the first matching ``CycleCorrectionRule`` to a granule.

    Parameters
    ----------
    rules : iterable of CycleCorrectionRule
        Checked in order; only the first match is applied.
    """

    def __init__(self, rules: Iterable):
        self.rules = list(rules)

    @staticmethod
    def matches(rule, meta: GranuleMetadata) -> bool:
        start, stop = rule.product_slice
        if meta.product_name[start:stop] != rule.product_match:
            return False
        if rule.max_rev is not None and not meta.absolute_rev_number < rule.max_rev:
            return False
        if rule.min_cycle is not None and not meta.cycle_number > rule.min_cycle:
            return False
        return True

    def __call__(self, meta: GranuleMetadata) -> tuple[int, int]:
        for rule in self.rules:
            if self.matches(rule, meta):
                cycle = meta.cycle_number + rule.cycle_offset
                logger.debug("Cycle corrected %d -> %d (%s): %s",
                             meta.cycle_number, cycle, rule.product_match, meta.source_id)
                return cycle, meta.pass_number
        return meta.cycle_number, meta.pass_number


def correction_from_config(config) -> CycleCorrection:
    """Build the correction hook described by ``config.corrections``."""
    if not config.corrections:
        return identity_correction
    return RuleBasedCorrection(config.corrections)
