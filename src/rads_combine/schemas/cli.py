"""CLIConfig: Command-line operational overrides.

Minimal configuration for operational parameters that commonly change
between runs: destination, record limit, excluded fields, verbosity.

This schema handles command-line arguments parsed by argparse.
"""

from typing import Literal, Optional
from pydantic import field_validator
from rads_combine.schemas.base import RadsBaseModel


class CLIConfig(RadsBaseModel):
    """Command-line configuration overrides.
    
    Operational-only settings that override user and param configs.
    Highest priority in config resolution, except ``exclude_fields`` which
    is added to the exclusions of the lower layers.
    
    Usage
    -----
        cli_cfg = CLIConfig(
            dest_dir="/data/rads/s3a",
            max_records=4000,
            exclude_fields=["agc_01_ku", "agc_01_c"],
        )
        
        internal = resolve_config(param_cfg, user_cfg, cli_cfg)
    """
    
    dest_dir: Optional[str] = None
    max_records: Optional[int] = None
    exclude_fields: Optional[list[str]] = None
    ledger: Optional[bool] = None
    log_level: Optional[Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]] = None
    log_file: Optional[str] = None

    @field_validator("exclude_fields", mode="before")
    @classmethod
    def flatten_exclude_lists(cls, v):
        """Accept repeated ``-x VAR1,VAR2`` options as one flat list."""
        if isinstance(v, str):
            v = [v]
        if v is None:
            return v
        names = []
        for item in v:
            names.extend(name.strip() for name in str(item).split(",") if name.strip())
        return names
    
    def to_internal_overrides(self) -> dict:
        """Convert CLI config to internal config structure.
        
        Returns
        -------
        dict
            Nested dictionary matching InternalConfig structure
        """
        overrides = {}
        
        combiner_overrides = {}
        if self.dest_dir is not None:
            combiner_overrides["dest_dir"] = str(self.dest_dir)
        if self.max_records is not None:
            combiner_overrides["max_records"] = self.max_records
        if self.exclude_fields is not None:
            combiner_overrides["exclude_fields"] = self.exclude_fields
        
        if combiner_overrides:
            overrides["combiner"] = combiner_overrides

        if self.ledger is not None:
            overrides["ledger"] = {"enabled": self.ledger}
        
        logging_overrides = {}
        if self.log_level is not None:
            logging_overrides["level"] = self.log_level
        if self.log_file is not None:
            logging_overrides["log_file"] = self.log_file
        if logging_overrides:
            overrides["logging"] = logging_overrides
        
        return overrides
