"""Core pass combiner execution logic.

This module contains the actual combiner runner, separated from argument parsing.
Scripts are thin wrappers; this is the real implementation.

Usage:
    ls S3A_SR_2_WAT____*/standard_measurement.nc | rads-combine /data/rads/s3a
    rads-combine /data/rads/s3a -x waveform_20_ku -x agc_01_ku,agc_01_c < granules.txt
    rads-combine /data/rads/s3a --config scripts/user_config.py --ledger g1.nc g2.nc
"""

import sys
import json
import argparse
import logging
import importlib.util
from pathlib import Path
from typing import Optional, Dict, Any, Iterable

from rads_combine.errors import CombineError
from rads_combine.pipeline.combiner import PassCombiner
from rads_combine.schemas import resolve_config, ParamConfig, UserConfig, CLIConfig


logger = logging.getLogger(__name__)


def load_user_config_dict(config_path: str) -> dict:
    """Load user config dict from Python file.

    Returns the raw dict before Pydantic validation.

    Parameters
    ----------
    config_path : str
        Path to user config Python file containing CONFIG dict.

    Returns
    -------
    dict
        Raw user configuration dictionary.

    Raises
    ------
    FileNotFoundError
        If config file does not exist.
    ValueError
        If no CONFIG dict found in file.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")

    spec = importlib.util.spec_from_file_location("config_module", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    # Find CONFIG dict
    for name in dir(module):
        if name.startswith('CONFIG'):
            obj = getattr(module, name)
            if isinstance(obj, dict):
                return obj

    raise ValueError(f"No CONFIG dict found in {path}")


def read_source_list(stream) -> list[str]:
    """Granule paths from a text stream, one per line, blank lines ignored."""
    return [line.strip() for line in stream if line.strip()]


def run_pass_combiner(
    source_ids: Iterable,
    user_config_path: Optional[str] = None,
    cli_args: Optional[Dict[str, Any]] = None,
    verbose: bool = False
):
    """Execute the pass combiner over a list of granules.

    This is the core execution function. It:
    1. Loads and resolves configuration (Param < User < CLI)
    2. Instantiates the pass combiner
    3. Runs it over ``source_ids`` in order and returns the summary

    Parameters
    ----------
    source_ids : iterable of str
        Granule paths in processing order.

    user_config_path : str, optional
        Path to user config file (Python file with CONFIG dict).

    cli_args : dict, optional
        CLI argument overrides. Keys: dest_dir, max_records, exclude_fields,
        ledger, log_level, log_file. All optional.

    verbose : bool, optional
        If True, enable DEBUG logging and print full resolved config.

    Returns
    -------
    CombineSummary

    Raises
    ------
    FileNotFoundError
        If user_config_path does not exist.
    ValueError
        If configuration validation fails or no destination is given.
    CombineError
        If the run aborts (too many granules per pass, write failure).

    Examples
    --------
    Run with CLI overrides only::

        run_pass_combiner(
            ["g1/standard_measurement.nc", "g2/standard_measurement.nc"],
            cli_args={"dest_dir": "/data/rads/s3a", "exclude_fields": ["agc_01_ku"]},
        )
    """
    # Load configurations
    param_cfg = ParamConfig()  # Expert defaults

    if user_config_path:
        user_cfg = UserConfig.model_validate(load_user_config_dict(user_config_path))
    else:
        user_cfg = UserConfig()

    # Create CLI config from arguments
    cli_args = dict(cli_args or {})
    if verbose and "log_level" not in cli_args:
        cli_args["log_level"] = "DEBUG"

    # Filter None values
    cli_dict = {k: v for k, v in cli_args.items() if v is not None}
    cli_cfg = CLIConfig.model_validate(cli_dict) if cli_dict else CLIConfig()

    # Resolve to internal config (Param < User < CLI)
    config = resolve_config(param_cfg, user_cfg, cli_cfg)

    if verbose:
        print("\nFull Internal Configuration:", file=sys.stderr)
        print(json.dumps(config.model_dump(), indent=2), file=sys.stderr)

    combiner = PassCombiner(config)
    return combiner.start(source_ids)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rads-combine",
        description="Combine Sentinel-3 granules into RADS pass files. "
                    "Granule names are read from the command line or, if none "
                    "are given, from standard input (one per line).",
    )
    parser.add_argument("destdir", help="Destination directory of the pass files")
    parser.add_argument("files", nargs="*", help="Granules to combine (default: read from stdin)")
    parser.add_argument("-m", "--max-records", type=int,
                        help="Maximum number of records per granule")
    parser.add_argument("-x", "--exclude", action="append", metavar="VAR1[,VAR2,...]",
                        help="Exclude fields from copying (repeatable)")
    parser.add_argument("--config", help="Path to user config file")
    parser.add_argument("--ledger", action="store_true", default=None,
                        help="Record the run in an SQLite ledger under destdir")
    parser.add_argument("--log-file", help="Also write the log to this file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv=None) -> int:
    """Console entry point of ``rads-combine``."""
    args = build_parser().parse_args(argv)

    source_ids = args.files or read_source_list(sys.stdin)
    cli_args = {
        "dest_dir": args.destdir,
        "max_records": args.max_records,
        "exclude_fields": args.exclude,
        "ledger": args.ledger,
        "log_file": args.log_file,
    }

    try:
        run_pass_combiner(source_ids, args.config, cli_args, verbose=args.verbose)
    except CombineError as e:
        logger.error("Run aborted: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
