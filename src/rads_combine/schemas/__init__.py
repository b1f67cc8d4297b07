"""Pydantic configuration schemas for the pass combiner.

All configuration validation, coercion, and normalization happens at
schema validation time via Pydantic.

Exports
-------
resolve_config : function
    Single entrypoint for configuration resolution
InternalConfig : class
    Fully validated, authoritative runtime configuration
ParamConfig : class
    Expert defaults (complete)
UserConfig : class
    User-facing configuration (forgiving, minimal)
CLIConfig : class
    Command-line operational overrides
CycleCorrectionRule : class
    Data-only description of a cycle-number anomaly
"""

from rads_combine.schemas.resolve import resolve_config
from rads_combine.schemas.internal import InternalConfig
from rads_combine.schemas.param import ParamConfig, CycleCorrectionRule
from rads_combine.schemas.user import UserConfig
from rads_combine.schemas.cli import CLIConfig

__all__ = [
    'resolve_config',
    'InternalConfig',
    'ParamConfig',
    'UserConfig',
    'CLIConfig',
    'CycleCorrectionRule',
]
