"""UserConfig: Forgiving, minimal user-facing configuration.

This schema accepts user inputs in a variety of formats, with aliases
for common naming patterns (e.g., DEST_DIR → dest_dir, MAX_RECORDS → max_records).

UserConfig is intentionally minimal - users only specify what they want
to override from the expert defaults.
"""

from typing import Literal, Optional, Any
from pydantic import Field, field_validator
from rads_combine.schemas.base import RadsBaseModel


class UserCombinerConfig(RadsBaseModel):
    """User-facing combiner config."""
    dest_dir: Optional[str] = None
    max_records: Optional[int] = None
    exclude_fields: Optional[list[str]] = None
    passes_per_cycle: Optional[int] = None
    max_open_sources: Optional[int] = None
    odd_pass_ascending: Optional[bool] = None
    pass_number_offset: Optional[int] = None
    unsupported_dtypes: Optional[list[str]] = None
    output_format: Optional[str] = None

    @field_validator("output_format", mode="before")
    @classmethod
    def normalize_format(cls, v):
        """Normalize netCDF format names to uppercase."""
        if isinstance(v, str):
            return v.upper().strip()
        return v


class UserMissionConfig(RadsBaseModel):
    """User-facing mission layout config."""
    mission_prefix: Optional[str] = None
    time_dim: Optional[str] = None
    time_var: Optional[str] = None
    lat_var: Optional[str] = None
    lon_var: Optional[str] = None
    coordinate_scale: Optional[float] = None
    product_prefix: Optional[tuple[int, int]] = None
    product_suffix: Optional[tuple[int, int]] = None
    xref_code: Optional[tuple[int, int]] = None
    epoch: Optional[str] = None
    provenance_var: Optional[str] = None


class UserEphemerisConfig(RadsBaseModel):
    """User-facing nominal orbit config."""
    repeat_days: Optional[float] = None
    ref_cycle: Optional[int] = None
    ref_pass: Optional[int] = None
    ref_time: Optional[str] = None
    ref_lon: Optional[float] = None


class UserConfig(RadsBaseModel):
    """User-facing configuration schema.
    
    Minimal, forgiving, and uses common aliases. Users only specify
    what they want to override from ParamConfig defaults.
    
    Usage
    -----
        user_cfg = UserConfig(
            DEST_DIR="/data/rads/s3a",
            EXCLUDE_FIELDS=["waveform_20_ku"],
            LOG_LEVEL="DEBUG",
        )
        
        internal = resolve_config(param_cfg, user_cfg, cli_cfg)
    """
    
    # Top-level operational settings
    dest_dir: Optional[str] = Field(None, alias="DEST_DIR")
    max_records: Optional[int] = Field(None, alias="MAX_RECORDS")
    exclude_fields: Optional[list[str]] = Field(None, alias="EXCLUDE_FIELDS")
    passes_per_cycle: Optional[int] = Field(None, alias="PASSES_PER_CYCLE")
    odd_pass_ascending: Optional[bool] = Field(None, alias="ODD_PASS_ASCENDING")

    # Mission settings (flat aliases)
    mission_prefix: Optional[str] = Field(None, alias="MISSION_PREFIX")

    # Anomaly corrections, one dict per CycleCorrectionRule
    corrections: Optional[list[dict[str, Any]]] = Field(None, alias="CORRECTIONS")

    # Ledger and logging
    ledger: Optional[bool] = Field(None, alias="LEDGER")
    log_level: Optional[Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]] = Field(None, alias="LOG_LEVEL")
    log_file: Optional[str] = Field(None, alias="LOG_FILE")
    
    # Nested overrides (advanced users)
    combiner: Optional[UserCombinerConfig] = None
    mission: Optional[UserMissionConfig] = None
    ephemeris: Optional[UserEphemerisConfig] = None
    
    model_config = RadsBaseModel.model_config.copy()
    # Allow forgiving input dictionaries (ignore unknown legacy keys)
    model_config.update({"populate_by_name": True, "extra": "ignore"})

    @field_validator("exclude_fields", mode="before")
    @classmethod
    def split_exclude_string(cls, v):
        """Accept a comma-separated string as well as a list."""
        if isinstance(v, str):
            return [name.strip() for name in v.split(",") if name.strip()]
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        """Accept lowercase level names."""
        if isinstance(v, str):
            return v.upper().strip()
        return v
    
    def to_internal_overrides(self) -> dict:
        """Convert flat UserConfig to nested InternalConfig structure.
        
        Returns
        -------
        dict
            Nested dictionary matching InternalConfig structure
        """
        overrides = {}
        
        # Combiner section
        combiner = {}
        if self.dest_dir is not None:
            combiner["dest_dir"] = str(self.dest_dir)
        if self.max_records is not None:
            combiner["max_records"] = self.max_records
        if self.exclude_fields is not None:
            combiner["exclude_fields"] = self.exclude_fields
        if self.passes_per_cycle is not None:
            combiner["passes_per_cycle"] = self.passes_per_cycle
        if self.odd_pass_ascending is not None:
            combiner["odd_pass_ascending"] = self.odd_pass_ascending

        # Merge with explicit combiner config
        if self.combiner is not None:
            combiner.update(self.combiner.model_dump(exclude_none=True))

        if combiner:
            overrides["combiner"] = combiner

        # Mission section
        mission = {}
        if self.mission_prefix is not None:
            mission["mission_prefix"] = self.mission_prefix
        if self.mission is not None:
            mission.update(self.mission.model_dump(exclude_none=True))
        if mission:
            overrides["mission"] = mission

        if self.ephemeris is not None:
            ephemeris = self.ephemeris.model_dump(exclude_none=True)
            if ephemeris:
                overrides["ephemeris"] = ephemeris

        if self.corrections is not None:
            overrides["corrections"] = self.corrections

        if self.ledger is not None:
            overrides["ledger"] = {"enabled": self.ledger}

        logging_cfg = {}
        if self.log_level is not None:
            logging_cfg["level"] = self.log_level
        if self.log_file is not None:
            logging_cfg["log_file"] = self.log_file
        if logging_cfg:
            overrides["logging"] = logging_cfg
        
        return overrides
