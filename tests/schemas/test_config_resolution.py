"""Test config resolution and validation with Pydantic."""

import pytest
from pydantic import ValidationError

from rads_combine.schemas import ParamConfig, UserConfig, CLIConfig, InternalConfig
from rads_combine.schemas.resolve import resolve_config, deep_merge

pytestmark = pytest.mark.unit


class TestConfigResolution:
    """Test resolve_config() precedence and merging."""

    def test_resolve_config_all_defaults(self):
        """Resolving with no user/CLI overrides uses all ParamConfig defaults."""
        config = resolve_config(ParamConfig(), None, None)

        assert isinstance(config, InternalConfig)
        assert config.combiner.dest_dir is None
        assert config.combiner.passes_per_cycle == 770
        assert config.combiner.max_open_sources == 20
        assert config.combiner.odd_pass_ascending is False
        assert config.mission.mission_prefix == "Sentinel 3"
        assert config.mission.time_dim == "time_01"
        assert config.corrections == []
        assert config.ledger.enabled is False

    def test_user_config_overrides_param_config(self):
        user = UserConfig(DEST_DIR="/data/rads/s3a", MAX_RECORDS=5000, LOG_LEVEL="debug")
        config = resolve_config(ParamConfig(), user, None)

        assert config.combiner.dest_dir == "/data/rads/s3a"
        assert config.combiner.max_records == 5000
        assert config.logging.level == "DEBUG"

    def test_cli_overrides_user(self):
        user = UserConfig(DEST_DIR="/data/user", MAX_RECORDS=5000)
        cli = CLIConfig(dest_dir="/data/cli")
        config = resolve_config(ParamConfig(), user, cli)

        assert config.combiner.dest_dir == "/data/cli"
        assert config.combiner.max_records == 5000

    def test_cli_exclusions_extend_user_exclusions(self):
        user = UserConfig(EXCLUDE_FIELDS="agc_01_ku, alt_01")
        cli = CLIConfig(exclude_fields=["agc_01_c,alt_01", "sig0_01_ku"])
        config = resolve_config(ParamConfig(), user, cli)

        assert config.combiner.exclude_fields == ["agc_01_ku", "alt_01", "agc_01_c", "sig0_01_ku"]

    def test_user_exclusions_replace_param_exclusions(self):
        param = ParamConfig.model_validate({"combiner": {"exclude_fields": ["waveform_20_ku"]}})
        config = resolve_config(param, UserConfig(EXCLUDE_FIELDS=["agc_01_ku"]), None)
        assert config.combiner.exclude_fields == ["agc_01_ku"]

        config = resolve_config(param, None, {"exclude_fields": ["agc_01_c"]})
        assert config.combiner.exclude_fields == ["waveform_20_ku", "agc_01_c"]

    def test_nested_user_sections(self):
        user = UserConfig(
            combiner={"output_format": "netcdf4_classic", "max_open_sources": 5},
            mission={"mission_prefix": "Sentinel 6", "xref_code": (0, 3)},
            ephemeris={"repeat_days": 10.0},
        )
        config = resolve_config(ParamConfig(), user, None)

        assert config.combiner.output_format == "NETCDF4_CLASSIC"
        assert config.combiner.max_open_sources == 5
        assert config.mission.mission_prefix == "Sentinel 6"
        assert config.mission.xref_code == (0, 3)
        assert config.mission.time_dim == "time_01"
        assert config.ephemeris.repeat_days == 10.0

    def test_corrections_validated(self):
        rule = {"product_slice": (82, 87), "product_match": "MAR_F", "max_rev": 5700,
                "min_cycle": 15, "cycle_offset": -2}
        config = resolve_config(ParamConfig(), UserConfig(CORRECTIONS=[rule]), None)
        assert config.corrections[0].cycle_offset == -2

        bad = dict(rule, product_match="MAR")
        with pytest.raises(ValidationError):
            resolve_config(ParamConfig(), UserConfig(CORRECTIONS=[bad]), None)

    def test_ledger_switch(self):
        config = resolve_config(ParamConfig(), UserConfig(LEDGER=True), CLIConfig(log_file="/tmp/x.log"))
        assert config.ledger.enabled is True
        assert config.ledger.filename == "combine_ledger.db"
        assert config.logging.log_file == "/tmp/x.log"

    def test_dict_inputs_accepted(self):
        config = resolve_config({}, {"DEST_DIR": "/d"}, {"max_records": 10})
        assert config.combiner.dest_dir == "/d"
        assert config.combiner.max_records == 10

    def test_resolution_does_not_mutate_param(self):
        param = ParamConfig()
        resolve_config(param, UserConfig(EXCLUDE_FIELDS="agc_01_ku"), None)
        assert param.combiner.exclude_fields == []


class TestValidation:

    def test_internal_config_is_frozen(self):
        config = resolve_config(ParamConfig(), None, None)
        with pytest.raises(ValidationError):
            config.combiner = None

    def test_too_many_open_sources_rejected(self):
        with pytest.raises(ValidationError):
            resolve_config(ParamConfig(), UserConfig(combiner={"max_open_sources": 21}), None)

    def test_unknown_output_format_rejected(self):
        with pytest.raises(ValidationError):
            resolve_config(ParamConfig(), UserConfig(combiner={"output_format": "hdf4"}), None)

    def test_param_rejects_unknown_keys(self):
        with pytest.raises(ValidationError):
            ParamConfig.model_validate({"combiner": {"dest": "/d"}})

    def test_user_ignores_unknown_keys(self):
        user = UserConfig.model_validate({"DEST_DIR": "/d", "GRANULE_LIST": "granules.txt"})
        assert user.dest_dir == "/d"

    def test_cli_log_level_checked(self):
        with pytest.raises(ValidationError):
            CLIConfig(log_level="LOUD")


def test_deep_merge():
    base = {"a": 1, "b": {"c": 2, "d": 3}}
    assert deep_merge(base, {"b": {"d": 4, "e": 5}, "f": 6}) == {"a": 1, "b": {"c": 2, "d": 4, "e": 5}, "f": 6}
    assert base == {"a": 1, "b": {"c": 2, "d": 3}}
