"""`rads_combine` - combine and split altimeter granules into RADS pass files.

Subpackages:
- altimetry: Granule reading, pass segmentation, pass file writing
- pipeline: Run driver and SQLite run ledger
- schemas: Layered pydantic configuration
- contracts: Fail-fast invariant checks
"""

__version__ = "0.1.0"
