"""ParamConfig: Expert defaults for the pass combiner.

This module defines the complete default configuration. ALL combiner
parameters must have defaults here. No runtime code should define
fallback values - this is the single source of truth for defaults.

The defaults describe Sentinel-3 SRAL granules (standard_measurements.nc or
reduced_measurements.nc) combined into RADS pass files.

Runtime code NEVER reads from ParamConfig directly - it only receives InternalConfig.
"""

from typing import Literal, Optional
from pydantic import Field, field_validator, model_validator
from rads_combine.schemas.base import RadsBaseModel


# =============================================================================
# Nested Configuration Models
# =============================================================================

class CombinerConfig(RadsBaseModel):
    """Pass combining and output configuration."""
    dest_dir: Optional[str] = None
    max_records: int = Field(2**31 - 1, ge=1, description="Maximum records accepted per granule")
    exclude_fields: list[str] = Field(default_factory=list)
    passes_per_cycle: int = Field(770, ge=2, description="Passes in one repeat cycle")
    max_open_sources: int = Field(20, ge=1, le=20, description="Spans buffered for one pass")
    odd_pass_ascending: bool = False
    pass_number_offset: int = Field(54, description="Pass of cycle 1 preceding absolute pass 1")
    unsupported_dtypes: list[str] = Field(default_factory=lambda: ["uint32", "uint64"])
    output_format: Literal["NETCDF4", "NETCDF4_CLASSIC", "NETCDF3_64BIT"] = "NETCDF4"


class MissionConfig(RadsBaseModel):
    """Granule layout: names, scaling and product-name slices."""
    mission_prefix: str = "Sentinel 3"
    time_dim: str = "time_01"
    time_var: str = "time_01"
    lat_var: str = "lat_01"
    lon_var: str = "lon_01"
    coordinate_scale: float = Field(1e-6, gt=0)
    product_prefix: tuple[int, int] = (0, 15)
    product_suffix: tuple[int, int] = (76, 94)
    xref_code: tuple[int, int] = (9, 12)
    epoch: str = "2000-01-01"
    provenance_var: str = "orbit_data_type"

    @field_validator("coordinate_scale", mode="before")
    @classmethod
    def coerce_scale_to_float(cls, v):
        """Allow int or float for coordinate_scale."""
        return float(v)


class EphemerisConfig(RadsBaseModel):
    """Nominal exact-repeat orbit used to predict equator crossings."""
    repeat_days: float = Field(27.0, gt=0)
    ref_cycle: int = 1
    ref_pass: int = 1
    ref_time: str = "2016-03-01T00:00:00"
    ref_lon: float = 0.0


class CycleCorrectionRule(RadsBaseModel):
    """One data-only cycle correction for a documented product anomaly.

    The rule matches when ``product_name[start:stop] == product_match``,
    the absolute revolution number is below ``max_rev`` and the cycle number
    is above ``min_cycle`` (unset bounds always match). Matching granules get
    ``cycle_offset`` added to their cycle number.
    """
    product_slice: tuple[int, int]
    product_match: str
    max_rev: Optional[int] = None
    min_cycle: Optional[int] = None
    cycle_offset: int = 0

    @model_validator(mode="after")
    def check_slice(self):
        start, stop = self.product_slice
        if stop - start != len(self.product_match):
            raise ValueError(
                f"product_slice {self.product_slice} does not fit "
                f"product_match {self.product_match!r}"
            )
        return self


class LedgerConfig(RadsBaseModel):
    """SQLite run ledger configuration."""
    enabled: bool = False
    filename: str = "combine_ledger.db"


class LoggingConfig(RadsBaseModel):
    """Logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_file: Optional[str] = None


# =============================================================================
# Main ParamConfig
# =============================================================================

class ParamConfig(RadsBaseModel):
    """Complete expert configuration with all defaults.
    
    Usage
    -----
    This config is NOT used directly by runtime code. It serves as the
    base layer in config resolution:
    
        internal_cfg = resolve_config(param_cfg, user_cfg, cli_cfg)
    
    Runtime code only sees InternalConfig.
    """
    
    combiner: CombinerConfig = Field(default_factory=CombinerConfig)
    mission: MissionConfig = Field(default_factory=MissionConfig)
    ephemeris: EphemerisConfig = Field(default_factory=EphemerisConfig)
    corrections: list[CycleCorrectionRule] = Field(default_factory=list)
    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
