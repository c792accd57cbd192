"""Tests for header resolution and data line parsing"""

import math

import pytest

from daabands.adapters.daa_stream_adapter import (
    DaaStreamReader, SchemaResolver, TabularStateParser, parse_clock_time, split_columns
)
from daabands.errors import ParseError, ParseErrorKind, SchemaError, SchemaErrorKind
from daabands.schemas.daa_schemas import CanonicalField, ExtraValueKind


@pytest.fixture
def resolver():
    return SchemaResolver()


@pytest.fixture
def parser():
    return TabularStateParser()


class TestSchemaResolver:

    def test_default_labels(self, resolver):
        schema = resolver.resolve("name, lat, lon, alt, vx, vy, vz, time",
                                  "-, [deg], [deg], [ft], [knot], [knot], [fpm], [s]")
        assert schema.index_of(CanonicalField.NAME) == 0
        assert schema.index_of(CanonicalField.TIME) == 7
        assert schema.latlon
        assert not schema.trkgsvs
        assert not schema.clock
        assert schema.units[1] == "deg"
        assert schema.units[0] == "unspecified"
        assert schema.extra_columns == []

    def test_labels_are_case_insensitive(self, resolver):
        schema = resolver.resolve("NAME, Lat, LON, Alt, TRK, GS, VS, Time", "")
        assert schema.index_of(CanonicalField.TRK_VX) == 4
        assert schema.trkgsvs

    def test_first_alias_wins(self, resolver):
        # 'lat' is listed before 'latitude'
        schema = resolver.resolve("name, latitude, lat, lon, alt, vx, vy, vz", "")
        assert schema.index_of(CanonicalField.LAT_SX) == 2
        assert "latitude" in schema.extra_labels()

    def test_cartesian_mode(self, resolver):
        schema = resolver.resolve("name, sx, sy, sz, vx, vy, vz, time",
                                  "-, [nmi], [nmi], [ft], [knot], [knot], [fpm], [s]")
        assert not schema.latlon
        assert not schema.trkgsvs

    def test_clock_mode(self, resolver):
        schema = resolver.resolve("name, lat, lon, alt, vx, vy, vz, clock", "")
        assert schema.clock
        assert schema.index_of(CanonicalField.TIME) == 7

    def test_time_is_optional(self, resolver):
        schema = resolver.resolve("name, lat, lon, alt, vx, vy, vz", "")
        assert schema.index_of(CanonicalField.TIME) == -1

    def test_missing_required_column(self, resolver):
        with pytest.raises(SchemaError) as excinfo:
            resolver.resolve("name, lat, lon, vx, vy, vz, time", "")
        assert excinfo.value.kind == SchemaErrorKind.MISSING_REQUIRED_COLUMN
        assert excinfo.value.field_name == CanonicalField.ALT_SZ.value

    def test_permuted_header_resolves_same_fields(self, resolver):
        base = resolver.resolve("name, lat, lon, alt, trk, gs, vs, time", "")
        permuted = resolver.resolve("time, vs, gs, trk, alt, lon, lat, name", "")
        assert base.field_labels() == permuted.field_labels()
        assert (base.latlon, base.trkgsvs, base.clock) == \
            (permuted.latlon, permuted.trkgsvs, permuted.clock)

    def test_extra_columns_in_header_order(self, resolver):
        schema = resolver.resolve(
            "name, lat, lon, alt, vx, vy, vz, time, alerter, s_EW_std, , callsign, alerter",
            "-, [deg], [deg], [ft], [knot], [knot], [fpm], [s], [none], [m]")
        assert schema.extra_labels() == ["alerter", "s_EW_std", "callsign"]
        assert schema.extra_unit("alerter") == "unspecified"
        assert schema.extra_unit("s_ew_std") == "m"
        # no unit token for this position
        assert schema.extra_unit("callsign") == "unitless"


class TestTabularStateParser:

    def test_parse_default_line(self, resolver, parser):
        schema = resolver.resolve("name, lat, lon, alt, vx, vy, vz, time",
                                  "-, [deg], [deg], [ft], [knot], [knot], [fpm], [s]")
        record = parser.parse_line(schema, "AC1, 37.1, -122.3, 5000, 10, 200, -500, 12.5", 3)
        assert record.name == "AC1"
        assert record.position.latitude == pytest.approx(37.1)
        assert record.position.longitude == pytest.approx(-122.3)
        assert record.position.alt_ft == pytest.approx(5000)
        assert record.velocity.vx_kt == pytest.approx(10)
        assert record.velocity.vs_fpm == pytest.approx(-500)
        assert record.time == pytest.approx(12.5)
        assert record.line_number == 3

    def test_unit_conversion(self, resolver, parser):
        schema = resolver.resolve("name, lat, lon, alt, vx, vy, vz, time",
                                  "-, [deg], [deg], [m], [m/s], [m/s], [m/s], [min]")
        record = parser.parse_line(schema, "AC1, 0, 0, 1000, 1852, 0, 1, 2")
        assert record.position.alt_ft == pytest.approx(1000 / 0.3048)
        assert record.velocity.vx_kt == pytest.approx(3600.0)
        assert record.velocity.vs_fpm == pytest.approx(60 / 0.3048)
        assert record.time == pytest.approx(120.0)

    def test_trk_gs_vs_round_trip(self, resolver, parser):
        schema = resolver.resolve("name, lat, lon, alt, trk, gs, vs, time", "")
        record = parser.parse_line(schema, "AC1, 0, 0, 1000, 90, 250, 0, 0")
        assert record.velocity.vx_kt == pytest.approx(250)
        assert record.velocity.vy_kt == pytest.approx(0, abs=1e-9)
        assert record.velocity.trk == pytest.approx(90)
        assert record.velocity.gs == pytest.approx(250)
        assert record.canonical_values()[3:6] == (90.0, 250.0, 0.0)

    def test_clock_time(self, resolver, parser):
        schema = resolver.resolve("name, lat, lon, alt, vx, vy, vz, clock", "")
        record = parser.parse_line(schema, "AC1, 0, 0, 1000, 0, 0, 0, 01:02:03.5")
        assert record.time == pytest.approx(3723.5)

    def test_missing_time_defaults_to_zero(self, resolver, parser):
        schema = resolver.resolve("name, lat, lon, alt, vx, vy, vz", "")
        assert parser.parse_line(schema, "AC1, 0, 0, 1000, 0, 0, 0").time == 0.0

    def test_too_few_columns(self, resolver, parser):
        schema = resolver.resolve("name, lat, lon, alt, vx, vy, vz, time", "")
        with pytest.raises(ParseError) as excinfo:
            parser.parse_line(schema, "AC1, 0, 0, 1000", 5)
        assert excinfo.value.kind == ParseErrorKind.TOO_FEW_COLUMNS
        assert excinfo.value.line_number == 5

    def test_invalid_number(self, resolver, parser):
        schema = resolver.resolve("name, lat, lon, alt, vx, vy, vz, time", "")
        with pytest.raises(ParseError) as excinfo:
            parser.parse_line(schema, "AC1, 0, abc, 1000, 0, 0, 0, 0", 4)
        assert excinfo.value.kind == ParseErrorKind.INVALID_NUMBER
        assert excinfo.value.line_number == 4

    def test_extra_values_are_typed(self, resolver, parser):
        schema = resolver.resolve(
            "name, lat, lon, alt, vx, vy, vz, time, alerter, s_EW_std, flag, callsign, note",
            "-, [deg], [deg], [ft], [knot], [knot], [fpm], [s], [none], [m], [none], [none], [none]")
        record = parser.parse_line(schema, "AC1, 0, 0, 1000, 0, 0, 0, 0, 2, 30.48, TRUE, N123,")

        alerter = record.extra("alerter")
        assert alerter.kind == ExtraValueKind.NUMBER
        assert alerter.as_number() == 2.0

        # meters converted to feet
        assert record.extra("s_ew_std").as_number() == pytest.approx(100.0)

        flag = record.extra("flag")
        assert flag.kind == ExtraValueKind.BOOL
        assert flag.as_bool()
        assert flag.as_text() == "TRUE"

        callsign = record.extra("callsign")
        assert callsign.kind == ExtraValueKind.TEXT
        assert math.isnan(callsign.as_number())
        assert not callsign.as_bool()

        # empty field has no value
        assert not record.has_extra("note")


class TestDaaStreamReader:

    def test_first_aircraft_is_ownship(self, sample_daa):
        table = DaaStreamReader().read(sample_daa)
        assert table.ownship_id == "AC1"
        assert table.traffic_ids == ["AC2", "AC3"]
        assert table.ownship().name == "AC1"

    def test_configured_ownship(self, sample_daa):
        table = DaaStreamReader().read(sample_daa, ownship_name="AC3")
        assert table.ownship_id == "AC3"
        assert table.traffic_ids == ["AC1", "AC2"]

    def test_histories_are_time_ordered(self):
        daa = "\n".join([
            "name, lat, lon, alt, vx, vy, vz, time",
            "-, [deg], [deg], [ft], [knot], [knot], [fpm], [s]",
            "AC1, 0, 0, 1000, 0, 0, 0, 10",
            "AC1, 0, 0, 1000, 0, 0, 0, 5",
            "AC1, 0, 0, 1200, 0, 0, 0, 20",
        ])
        history = DaaStreamReader().read(daa).histories["AC1"]
        assert [r.time for r in history.records] == [5.0, 10.0, 20.0]
        assert history.latest().position.alt_ft == 1200.0

    def test_comments_and_blank_lines_are_skipped(self, sample_daa):
        table = DaaStreamReader().read("# generated\n\n" + sample_daa)
        assert len(table.histories) == 3

    def test_bad_line_rejects_whole_table(self, sample_daa):
        with pytest.raises(ParseError):
            DaaStreamReader().read(sample_daa + "AC4, 1, 1\n")

    def test_missing_units_line(self):
        with pytest.raises(SchemaError):
            DaaStreamReader().read("name, lat, lon, alt, vx, vy, vz, time\n")


def test_split_columns():
    assert split_columns(" a ,b,, c ") == ["a", "b", "", "c"]


def test_parse_clock_time():
    assert parse_clock_time("12.5") == 12.5
    assert parse_clock_time("01:00") == 60.0
    assert parse_clock_time("1:00:00") == 3600.0
