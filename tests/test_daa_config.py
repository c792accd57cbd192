"""Tests for DAA parameter files and REPL settings"""

import math

import pytest
import yaml

from daabands.errors import ConfigError
from daabands.repl.session import SessionState
from daabands.utils import units as unit_utils
from daabands.utils.config import DEFAULT_CONFIG_FILE, Config
from daabands.utils.daa_config import DaaParameters, load_daa_parameters, parse_daa_parameters


class TestDaaParameters:

    def test_text_format(self):
        params = parse_daa_parameters("""
        # thresholds
        DTHR = 0.66 [nmi]
        ZTHR = 450 [ft]   # vertical
        lookahead_time = 3 [min]
        ownship_centric_wcv = true
        alerting_logic = DANTi
        """)
        assert params.get_value("DTHR") == pytest.approx(0.66 * 1852.0 / 0.3048)
        assert params.get_value("zthr") == 450.0
        assert params.get_value("lookahead_time") == 180.0
        assert params.get_bool("ownship_centric_wcv")
        assert params.get_string("alerting_logic") == "DANTi"
        assert math.isnan(params.get_value("alerting_logic"))
        assert len(params) == 5

    def test_malformed_line(self):
        with pytest.raises(ConfigError):
            parse_daa_parameters("this is not a parameter")

    def test_update_overrides(self):
        base = DaaParameters()
        base.set("alerter", 1)
        base.set("DTHR", 4000, "[ft]")
        other = DaaParameters()
        other.set("Alerter", "2")
        base.update(other)
        assert base.get_int("alerter") == 2
        assert base.to_dict() == {"Alerter": 2.0, "DTHR": 4000.0}

    def test_missing_key_defaults(self):
        params = DaaParameters()
        assert params.get_value("DTHR", 1.5) == 1.5
        assert params.get_int("alerter", 3) == 3
        assert params.get_string("missing") == ""
        assert not params.contains("missing")


class TestLoadDaaParameters:

    def test_load_conf(self, daa_config_folder):
        params = load_daa_parameters(daa_config_folder / "DANTi_SL3.conf")
        assert params.get_value("DTHR") == 4000.0
        assert params.get_int("alerter") == 1

    def test_load_yaml(self, temp_dir):
        path = temp_dir / "daa.yaml"
        path.write_text(yaml.safe_dump({
            'DTHR': {'value': 1.0, 'unit': 'nmi'},
            'alerter': 2,
            'alerting_logic': 'DANTi',
        }))
        params = load_daa_parameters(path)
        assert params.get_value("DTHR") == pytest.approx(unit_utils.convert(1.0, 'nmi', 'ft'))
        assert params.get_int("alerter") == 2
        assert params.get_string("alerting_logic") == "DANTi"

    def test_yaml_must_be_mapping(self, temp_dir):
        path = temp_dir / "daa.yml"
        path.write_text("- one\n- two\n")
        with pytest.raises(ConfigError):
            load_daa_parameters(path)

    def test_missing_file(self, temp_dir):
        with pytest.raises(ConfigError):
            load_daa_parameters(temp_dir / "missing.conf")

    def test_path_with_nul_byte(self, temp_dir):
        with pytest.raises(ConfigError):
            load_daa_parameters(temp_dir / "a\x00b" / "DANTi_SL3.conf")


class TestConfig:

    def test_defaults(self):
        config = Config()
        assert config.repl['stale_threshold'] == 10.0
        assert config.repl['precision'] == 10
        assert config.daa['config_file'] == DEFAULT_CONFIG_FILE
        assert config.daa_server == {'host': 'localhost', 'port': 8083, 'connect_timeout': 5.0}

    def test_load_merges_defaults(self, temp_dir):
        path = temp_dir / "repl.yaml"
        path.write_text(yaml.safe_dump({
            'repl': {'stale_threshold': 30, 'wind': {'deg': 90, 'knot': 15}},
            'daa_server': {'port': 9100},
        }))
        config = Config.load(path)
        assert config.repl['stale_threshold'] == 30
        assert config.repl['precision'] == 10
        assert config.daa_server['host'] == 'localhost'
        assert config.daa_server['port'] == 9100

        session = SessionState.from_config(config)
        assert session.stale_threshold == 30.0
        assert session.wind.deg == 90.0
        assert session.server_port == 9100
        assert session.time_column == 7

    def test_missing_file_gives_defaults(self, temp_dir):
        assert Config.load(temp_dir / "absent.yaml").repl['precision'] == 10

    def test_precision_out_of_range(self, temp_dir):
        path = temp_dir / "repl.yaml"
        path.write_text("repl:\n  precision: 100000000000\n")
        with pytest.raises(ConfigError):
            SessionState.from_config(Config.load(path))

    def test_unknown_section(self, temp_dir):
        path = temp_dir / "repl.yaml"
        path.write_text("plotting: {dpi: 300}\n")
        with pytest.raises(ConfigError):
            Config.load(path)


class TestUnits:

    def test_normalize(self):
        assert unit_utils.normalize_unit("[deg]") == "deg"
        assert unit_utils.normalize_unit(" - ") == unit_utils.UNSPECIFIED
        assert unit_utils.normalize_unit(None) == unit_utils.UNITLESS

    def test_convert(self):
        assert unit_utils.convert(1.0, "nmi", "ft") == pytest.approx(6076.115, rel=1e-6)
        assert unit_utils.convert(100.0, "fpm", "ft/min") == pytest.approx(100.0)
        assert unit_utils.convert(7.0, "unspecified", "ft") == 7.0

    def test_incompatible_units(self):
        with pytest.raises(ValueError):
            unit_utils.convert(1.0, "ft", "s")
