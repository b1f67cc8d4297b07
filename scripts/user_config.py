"""RADS pass combiner user configuration.

This is the user-facing configuration file. Modify settings here to customize
the combiner behavior. Advanced settings are the defaults of
rads_combine.schemas.param.ParamConfig.

Usage:
    ls /data/s3a/l2/*/standard_measurement.nc | python scripts/run_pass_combiner.py /data/rads/s3a --config scripts/user_config.py
    rads-combine /data/rads/s3a --config scripts/user_config.py < granules.txt
"""

CONFIG = {
    # ========================================================================
    # OUTPUT
    # ========================================================================
    "DEST_DIR": "/data/rads/s3a",   # Pass files go to DEST_DIR/cCCC/
    "LEDGER": True,                 # SQLite audit trail in DEST_DIR

    # ========================================================================
    # INPUT LIMITS AND FIELDS
    # ========================================================================
    "MAX_RECORDS": 100000,          # Granules with more records are skipped
    "EXCLUDE_FIELDS": "agc_01_plrm_ku,sig0_01_plrm_ku",   # Not copied

    # ========================================================================
    # MISSION
    # ========================================================================
    "MISSION_PREFIX": "Sentinel 3",
    "PASSES_PER_CYCLE": 770,
    "ODD_PASS_ASCENDING": False,    # Odd passes run from north to south

    # ========================================================================
    # KNOWN PRODUCT ANOMALIES
    # ========================================================================
    # March 2017 REF data of Sentinel-3A carries cycle numbers two too high
    "CORRECTIONS": [
        {
            "product_slice": (82, 87),
            "product_match": "MAR_F",
            "max_rev": 5700,
            "min_cycle": 15,
            "cycle_offset": -2,
        },
    ],

    # ========================================================================
    # LOGGING
    # ========================================================================
    "LOG_LEVEL": "INFO",
    "LOG_FILE": None,               # e.g. "/data/rads/s3a/combine.log"
}
