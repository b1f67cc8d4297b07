"""Orbit bookkeeping: pass keys, direction convention, provenance and equator crossings.

A repeat orbit is divided into cycles of a fixed number of passes. Granules
sometimes carry a pass number beyond the last pass of the cycle; those belong
to the next cycle and are normalized here before they are used as a key.
"""

from dataclasses import dataclass
from typing import Protocol
import logging

import numpy as np
import pandas as pd

__all__ = [
    'SegmentKey',
    'normalize_key',
    'next_key',
    'expects_ascending',
    'orbit_type_from_xref',
    'ORBIT_TYPES',
    'UNKNOWN_ORBIT_TYPE',
    'EquatorCrossing',
    'EquatorPredictor',
    'RepeatOrbitEphemeris',
    'format_time',
]

logger = logging.getLogger(__name__)

# Orbit solution codes found in xref_orbit_data, ranked by quality
ORBIT_TYPES = {
    "OSF": 0,
    "FPO": 1,
    "NAT": 2,
    "NAV": 3,
    "ROE": 4,
    "MDO": 5,
    "POE": 6,
}
UNKNOWN_ORBIT_TYPE = 127
ORBIT_TYPE_MEANINGS = "scenario prediction navatt doris_nav gnss_roe doris_moe poe"


@dataclass(frozen=True, order=True)
class SegmentKey:
    """(cycle, pass) pair identifying one pass file.

    Use :meth:`ordinal` for comparisons across keys: the dataclass ordering
    is lexicographic, which only agrees with it for normalized keys.
    """
    cycle: int
    pass_number: int

    def ordinal(self, passes_per_cycle: int) -> int:
        return self.cycle * passes_per_cycle + self.pass_number

    def __str__(self):
        return f"c{self.cycle:03d}p{self.pass_number:03d}"


def normalize_key(cycle: int, pass_number: int, passes_per_cycle: int) -> SegmentKey:
    """Roll a pass number beyond the end of the cycle into the next cycle(s).

    >>> normalize_key(5, 771, 770)
    SegmentKey(cycle=6, pass_number=1)
    """
    if pass_number > passes_per_cycle:
        cycle += (pass_number - 1) // passes_per_cycle
        pass_number = (pass_number - 1) % passes_per_cycle + 1
    return SegmentKey(int(cycle), int(pass_number))


def next_key(key: SegmentKey, passes_per_cycle: int) -> SegmentKey:
    """Key of the pass following ``key``."""
    return normalize_key(key.cycle, key.pass_number + 1, passes_per_cycle)


def expects_ascending(key: SegmentKey, odd_pass_ascending: bool = False) -> bool:
    """Whether latitude should increase along the pass identified by ``key``.

    With the default convention odd passes run with decreasing latitude and
    even passes with increasing latitude. ``odd_pass_ascending`` flips it.
    """
    odd = key.pass_number % 2 == 1
    return odd if odd_pass_ascending else not odd


def orbit_type_from_xref(xref_orbit_data: str, code_slice: tuple[int, int] = (9, 12)) -> int:
    """Map the orbit file reference of a granule to its provenance tag.

    Unknown or missing codes map to ``UNKNOWN_ORBIT_TYPE``.
    """
    start, stop = code_slice
    return ORBIT_TYPES.get(str(xref_orbit_data)[start:stop], UNKNOWN_ORBIT_TYPE)


def format_time(seconds: float, epoch: str = "2000-01-01") -> str:
    """Format seconds since ``epoch`` as ``YYYY-MM-DD HH:MM:SS.ffffff``."""
    stamp = pd.Timestamp(epoch) + pd.to_timedelta(float(seconds), unit="s")
    return stamp.strftime("%Y-%m-%d %H:%M:%S.%f")


@dataclass(frozen=True)
class EquatorCrossing:
    """Equator crossing of a pass: seconds since the mission epoch and longitude."""
    time: float
    lon: float


class EquatorPredictor(Protocol):
    """Anything that can predict the equator crossing of a pass."""

    def predict_equator(self, key: SegmentKey) -> EquatorCrossing:
        ...


class RepeatOrbitEphemeris:
    """Nominal equator crossings of an exact-repeat orbit.

    Passes are spaced evenly over the repeat period. Between successive
    passes the node moves half a revolution (180 degrees) less the rotation
    of the Earth during one pass, so that after a full cycle the ground track
    closes on itself.

    Parameters
    ----------
    config : InternalConfig
        Uses ``config.ephemeris`` (reference pass, time and longitude),
        ``config.combiner.passes_per_cycle`` and ``config.mission.epoch``.

    Examples
    --------
    >>> eph = RepeatOrbitEphemeris(config)
    >>> eph.predict_equator(SegmentKey(6, 1))
    EquatorCrossing(time=..., lon=...)
    """

    def __init__(self, config):
        eph = config.ephemeris
        self.passes_per_cycle = config.combiner.passes_per_cycle
        self.ref_cycle = eph.ref_cycle
        self.ref_pass = eph.ref_pass
        self.ref_lon = eph.ref_lon
        self.ref_time = (
            pd.Timestamp(eph.ref_time) - pd.Timestamp(config.mission.epoch)
        ).total_seconds()
        self.pass_seconds = eph.repeat_days * 86400.0 / self.passes_per_cycle
        self.pass_lon_shift = 180.0 - 360.0 * self.pass_seconds / 86400.0
        logger.debug("Nominal orbit: %.3f s per pass, %.4f deg node shift",
                     self.pass_seconds, self.pass_lon_shift)

    def predict_equator(self, key: SegmentKey) -> EquatorCrossing:
        u = (key.cycle - self.ref_cycle) * self.passes_per_cycle + key.pass_number - self.ref_pass
        time = self.ref_time + u * self.pass_seconds
        lon = float(np.mod(self.ref_lon + u * self.pass_lon_shift, 360.0))
        return EquatorCrossing(time=float(time), lon=lon)
