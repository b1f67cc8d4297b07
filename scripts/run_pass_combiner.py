#!/usr/bin/env python3
"""RADS pass combiner runner.

Usage:
    ls S3A_*/standard_measurement.nc | python scripts/run_pass_combiner.py /data/rads/s3a
    python scripts/run_pass_combiner.py /data/rads/s3a --config scripts/user_config.py < granules.txt
    python scripts/run_pass_combiner.py /data/rads/s3a -x waveform_20_ku g1.nc g2.nc

Note: User config in scripts/user_config.py, expert defaults in
rads_combine.schemas.param.ParamConfig
"""

import sys
from pathlib import Path

# Add src to path
project_root = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(project_root / "src"))

from rads_combine.cli.run_combine import main


if __name__ == "__main__":
    sys.exit(main())
