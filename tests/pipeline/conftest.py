import pytest
import numpy as np

from rads_combine.pipeline.ledger import CombineLedger

from tests.helpers.fake_granule import write_fake_granule, T2017


@pytest.fixture
def ledger(temp_dir):
    db_path = temp_dir / "ledger.db"
    led = CombineLedger(db_path)
    yield led
    led.close()


@pytest.fixture
def orbit_granules(granule_dir):
    """Three overlapping granules covering passes 241 (descending) and 242 (ascending).

    - a.nc: 20 s of pass 241
    - b.nc: repeats the last 5 s of a.nc, ends pass 241 at t=29 and starts
      pass 242 at t=30
    - c.nc: continues pass 242, with one repeated time stamp
    """
    t = T2017 + np.arange(40, dtype=float)
    lat = np.concatenate([np.linspace(70, -70, 30), np.linspace(-69, -60, 10)])

    c_time = t[30:40].copy()
    c_time[5] = c_time[4]

    return [
        write_fake_granule(granule_dir / "a.nc", t[0:20], lat[0:20], cycle=15, pass_number=241),
        write_fake_granule(granule_dir / "b.nc", t[15:33], lat[15:33], cycle=15, pass_number=241),
        write_fake_granule(granule_dir / "c.nc", c_time, lat[30:40], cycle=15, pass_number=242),
    ]
