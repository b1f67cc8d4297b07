"""InternalConfig: Authoritative runtime configuration.

This is the ONLY config schema that runtime code sees. It is fully validated,
normalized, and contains NO optional fields that processing code depends on.

All .get() calls, fallback defaults, and validation logic are FORBIDDEN in
runtime code - everything is explicit here.
"""

from typing import Literal, Optional
from pydantic import Field, ConfigDict
from rads_combine.schemas.base import RadsBaseModel
from rads_combine.schemas.param import CycleCorrectionRule


# =============================================================================
# Nested Configuration Models (Runtime)
# =============================================================================

class InternalCombinerConfig(RadsBaseModel):
    """Runtime combiner configuration.
    
    Note: dest_dir may be None during config merging, but must be provided
    before the combiner runs (checked by PassCombiner).
    """
    dest_dir: Optional[str]
    max_records: int = Field(ge=1)
    exclude_fields: list[str]
    passes_per_cycle: int = Field(ge=2)
    max_open_sources: int = Field(ge=1, le=20)
    odd_pass_ascending: bool
    pass_number_offset: int
    unsupported_dtypes: list[str]
    output_format: Literal["NETCDF4", "NETCDF4_CLASSIC", "NETCDF3_64BIT"]


class InternalMissionConfig(RadsBaseModel):
    """Runtime granule layout."""
    mission_prefix: str
    time_dim: str
    time_var: str
    lat_var: str
    lon_var: str
    coordinate_scale: float
    product_prefix: tuple[int, int]
    product_suffix: tuple[int, int]
    xref_code: tuple[int, int]
    epoch: str
    provenance_var: str


class InternalEphemerisConfig(RadsBaseModel):
    """Runtime nominal orbit."""
    repeat_days: float = Field(gt=0)
    ref_cycle: int
    ref_pass: int
    ref_time: str
    ref_lon: float


class InternalLedgerConfig(RadsBaseModel):
    """Runtime ledger configuration."""
    enabled: bool
    filename: str


class InternalLoggingConfig(RadsBaseModel):
    """Runtime logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    log_file: Optional[str]


# =============================================================================
# Main InternalConfig
# =============================================================================

class InternalConfig(RadsBaseModel):
    """Authoritative runtime configuration.
    
    Usage
    -----
    Runtime modules receive InternalConfig and access fields directly:
    
        def __init__(self, config: InternalConfig):
            self.passes_per_cycle = config.combiner.passes_per_cycle  # NOT .get()
            self.time_dim = config.mission.time_dim
    
    Rules
    -----
    - NO .get() calls
    - NO fallback defaults
    - NO validation
    
    All of that happens during config resolution, not in runtime code.
    """
    
    combiner: InternalCombinerConfig
    mission: InternalMissionConfig
    ephemeris: InternalEphemerisConfig
    corrections: list[CycleCorrectionRule]
    ledger: InternalLedgerConfig
    logging: InternalLoggingConfig
    
    model_config = ConfigDict(
        extra='forbid',
        validate_assignment=True,
        use_enum_values=True,
        str_strip_whitespace=True,
        frozen=True,  # Immutable after construction
    )
