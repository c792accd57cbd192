"""DAA state table parser with header alias resolution and extra columns"""

import logging
import math
from typing import Dict, List, Optional, Tuple

from ..errors import ParseError, ParseErrorKind, SchemaError, SchemaErrorKind
from ..schemas.daa_schemas import (
    CLOCK_ALIASES, FIELD_ALIASES, LATLON_ALIASES, REQUIRED_FIELDS, TRKGSVS_ALIASES,
    AircraftHistory, AircraftRecord, CanonicalField, ExtraColumn, ExtraValue,
    Position, Schema, StateTable, Velocity
)
from ..utils import units as unit_utils

logger = logging.getLogger(__name__)

DELIMITER = ","


def split_columns(line: str) -> List[str]:
    """Split one table line into trimmed column strings"""
    return [token.strip() for token in line.split(DELIMITER)]


def parse_clock_time(text: str) -> float:
    """
    Parse a time column value into seconds.

    Accepts plain numbers and clock strings of the form hh:mm:ss[.sss] or mm:ss.
    """
    text = text.strip()
    if ":" not in text:
        return float(text)
    seconds = 0.0
    for part in text.split(":"):
        seconds = seconds * 60.0 + float(part)
    return seconds


class SchemaResolver:
    """Maps free-form header labels onto canonical fields via alias lists"""

    def __init__(self, aliases: Optional[Dict[CanonicalField, Tuple[str, ...]]] = None):
        self.aliases = aliases or FIELD_ALIASES

    def resolve(self, header_line: str, units_line: str) -> Schema:
        """
        Build a schema from a header line and a units line.

        Raises SchemaError when a required canonical field does not resolve;
        this happens before any data line is looked at.
        """
        labels = split_columns(header_line)
        units = [unit_utils.normalize_unit(token) for token in split_columns(units_line)]
        lowered = [label.lower() for label in labels]

        columns: Dict[CanonicalField, int] = {}
        for canonical, aliases in self.aliases.items():
            index = self._find(lowered, aliases)
            if index >= 0:
                columns[canonical] = index

        for canonical in REQUIRED_FIELDS:
            if columns.get(canonical, -1) < 0:
                raise SchemaError(SchemaErrorKind.MISSING_REQUIRED_COLUMN, canonical.value)

        schema = Schema(
            labels=labels,
            units=units,
            columns=columns,
            latlon=self._find(lowered, LATLON_ALIASES) >= 0,
            trkgsvs=self._find(lowered, TRKGSVS_ALIASES) >= 0,
            clock=self._find(lowered, CLOCK_ALIASES) >= 0,
        )

        # Remaining labels become user columns, in header order
        consumed = set(columns.values())
        for index, label in enumerate(labels):
            key = label.lower()
            if not label or index in consumed or key in lowered[:index]:
                continue
            unit = units[index] if index < len(units) else unit_utils.UNITLESS
            schema.extra_columns.append(ExtraColumn(label=label, index=index, unit=unit))

        logger.debug(f"Resolved schema: latlon={schema.latlon} trkgsvs={schema.trkgsvs} "
                     f"extra columns={schema.extra_labels()}")
        return schema

    @staticmethod
    def _find(lowered_labels: List[str], aliases: Tuple[str, ...]) -> int:
        for alias in aliases:
            if alias in lowered_labels:
                return lowered_labels.index(alias)
        return -1


class TabularStateParser:
    """Builds typed aircraft records from data lines of a resolved schema"""

    def parse_line(self, schema: Schema, line: str, line_number: int = 0) -> AircraftRecord:
        fields = split_columns(line)
        highest = max(schema.columns.values())
        if len(fields) <= highest:
            raise ParseError(ParseErrorKind.TOO_FEW_COLUMNS, line_number,
                             f"expected {highest + 1} columns, found {len(fields)}")

        name = fields[schema.index_of(CanonicalField.NAME)]
        horizontal_unit = "deg" if schema.latlon else "nmi"

        sx = self._number(schema, fields, CanonicalField.LAT_SX, horizontal_unit, line_number)
        sy = self._number(schema, fields, CanonicalField.LON_SY, horizontal_unit, line_number)
        sz = self._number(schema, fields, CanonicalField.ALT_SZ, "ft", line_number)
        position = Position(latlon=schema.latlon, lat_x=sx, lon_y=sy, alt_ft=sz)

        if schema.trkgsvs:
            velocity = Velocity.from_trk_gs_vs(
                self._number(schema, fields, CanonicalField.TRK_VX, "deg", line_number),
                self._number(schema, fields, CanonicalField.GS_VY, "knot", line_number),
                self._number(schema, fields, CanonicalField.VS_VZ, "fpm", line_number))
        else:
            velocity = Velocity.from_components(
                self._number(schema, fields, CanonicalField.TRK_VX, "knot", line_number),
                self._number(schema, fields, CanonicalField.GS_VY, "knot", line_number),
                self._number(schema, fields, CanonicalField.VS_VZ, "fpm", line_number))

        time = 0.0
        time_index = schema.index_of(CanonicalField.TIME)
        if time_index >= 0:
            try:
                time = unit_utils.convert(parse_clock_time(fields[time_index]),
                                          schema.unit_of(time_index), "s")
            except ValueError as e:
                raise ParseError(ParseErrorKind.INVALID_NUMBER, line_number,
                                 f"time '{fields[time_index]}': {e}")

        return AircraftRecord(
            name=name,
            time=time,
            position=position,
            velocity=velocity,
            extras=self._extras(schema, fields),
            line_number=line_number,
        )

    @staticmethod
    def _number(schema: Schema, fields: List[str], canonical: CanonicalField,
                target_unit: str, line_number: int) -> float:
        index = schema.index_of(canonical)
        text = fields[index]
        try:
            value = float(text)
            return unit_utils.convert(value, schema.unit_of(index), target_unit)
        except ValueError as e:
            raise ParseError(ParseErrorKind.INVALID_NUMBER, line_number,
                             f"{canonical.value} '{text}': {e}")

    @staticmethod
    def _extras(schema: Schema, fields: List[str]) -> Dict[str, ExtraValue]:
        extras: Dict[str, ExtraValue] = {}
        for column in schema.extra_columns:
            if column.index >= len(fields) or fields[column.index] == "":
                continue
            raw = fields[column.index]
            number = None
            try:
                number = float(raw)
            except ValueError:
                pass
            if number is not None and not math.isnan(number) and unit_utils.is_known(column.unit):
                number = unit_utils.to_internal(number, column.unit)
            extras[column.label] = ExtraValue.from_text(raw, number)
        return extras


class DaaStreamReader:
    """
    Reads a complete daa table (labels, units, data lines) into a StateTable.

    The ownship is the aircraft named ownship_name, or the first aircraft
    encountered when no name is configured.
    """

    def __init__(self, resolver: Optional[SchemaResolver] = None,
                 parser: Optional[TabularStateParser] = None):
        self.resolver = resolver or SchemaResolver()
        self.parser = parser or TabularStateParser()

    def read(self, daa_data: str, ownship_name: Optional[str] = None) -> StateTable:
        logger.debug("Reading data stream...")
        lines: List[Tuple[int, str]] = []
        for number, line in enumerate(daa_data.splitlines(), start=1):
            stripped = line.strip()
            if stripped and not stripped.startswith("#"):
                lines.append((number, stripped))

        if len(lines) < 2:
            raise SchemaError(SchemaErrorKind.MISSING_REQUIRED_COLUMN,
                              "header" if not lines else "units")

        schema = self.resolver.resolve(lines[0][1], lines[1][1])
        table = StateTable(schema=schema, ownship_id=ownship_name or None)

        # Parse everything first so a bad line leaves no partial table behind
        records = [self.parser.parse_line(schema, text, number) for number, text in lines[2:]]

        for record in records:
            if not table.ownship_id:
                table.ownship_id = record.name
                logger.debug(f"Setting ownship name to {record.name}")
            role = "ownship" if record.name == table.ownship_id else "traffic"
            logger.debug(f"{role} {record.name} (time: {record.time})")
            history = table.histories.get(record.name)
            if history is None:
                history = AircraftHistory(record.name)
                table.histories[record.name] = history
            history.append(record)

        logger.debug(f"Done reading {len(records)} records for {len(table.histories)} aircraft")
        return table
