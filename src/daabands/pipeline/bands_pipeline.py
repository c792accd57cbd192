"""Bands pipeline: table snapshot -> parse -> eviction -> engine -> JSON"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..adapters.daa_stream_adapter import DaaStreamReader
from ..detection.engine import (
    UNCERTAINTY_COLUMNS, AircraftParameters, BandsEngine, BandsParameters, EngineAircraft
)
from ..detection.staleness import evict
from ..errors import ParseError, ParseErrorKind
from ..schemas.daa_schemas import AircraftRecord, Schema, StateTable, Wind
from ..utils import units as unit_utils
from ..utils.daa_config import DaaParameters
from .rendering import render_bands, render_lla


@dataclass
class WalkResult:
    """Outcome of reading and cleaning one table snapshot"""
    table: StateTable
    removed: List[str] = field(default_factory=list)

    @property
    def ownship_id(self) -> Optional[str]:
        return self.table.ownship_id


def aircraft_parameters(record: AircraftRecord, schema: Schema) -> AircraftParameters:
    """
    Collect per-aircraft parameters from the extra columns of a record.

    The alerter index and the uncertainty components are forwarded only when
    their column holds a value; everything else goes to the generic set, as
    text for unitless columns and as a number otherwise.
    """
    params = AircraftParameters()
    for label, value in record.extras.items():
        unit = schema.extra_unit(label) or unit_utils.UNITLESS
        if unit in (unit_utils.UNITLESS, unit_utils.UNSPECIFIED) or value.number is None:
            params.extra.set(label, value.as_text())
        else:
            params.extra.set(label, value.as_number())

    alerter = params.extra.get_value('alerter')
    if math.isfinite(alerter):
        params.alerter_index = int(alerter)

    for name in UNCERTAINTY_COLUMNS:
        component = params.extra.get_value(name)
        if math.isfinite(component):
            setattr(params, name, component)
    return params


class BandsPipeline:
    """Runs one computation over a transient table snapshot"""

    def __init__(self, engine: BandsEngine, reader: Optional[DaaStreamReader] = None):
        self.engine = engine
        self.reader = reader or DaaStreamReader()
        self.logger = logging.getLogger(__name__)

    def walk(self, daa_data: str, ownship_name: Optional[str],
             stale_threshold: float) -> WalkResult:
        """Parse a snapshot and drop stale traffic; the ownship must be present"""
        table = self.reader.read(daa_data, ownship_name)
        if table.ownship() is None:
            raise ParseError(ParseErrorKind.MISSING_OWNSHIP, 0,
                             f"no record for ownship '{table.ownship_id}'")
        removed = evict(table, table.ownship_id, stale_threshold)
        self.logger.debug(f"Walked table: ownship {table.ownship_id}, traffic {table.traffic_ids}")
        return WalkResult(table=table, removed=removed)

    def _engine_inputs(self, table: StateTable) -> Tuple[EngineAircraft, List[EngineAircraft]]:
        ownship = table.ownship()
        own = EngineAircraft(ownship, aircraft_parameters(ownship, table.schema))
        traffic = [EngineAircraft(record, aircraft_parameters(record, table.schema))
                   for record in table.traffic()]
        return own, traffic

    def compute_bands(self, daa_data: str, ownship_name: Optional[str], stale_threshold: float,
                      daa_params: DaaParameters, wind: Wind, precision: int,
                      configuration: str = "") -> Tuple[WalkResult, Dict[str, Any]]:
        walked = self.walk(daa_data, ownship_name, stale_threshold)
        ownship, traffic = self._engine_inputs(walked.table)

        params = BandsParameters(daa=DaaParameters(), wind=wind, configuration=configuration)
        params.daa.update(daa_params)
        # per-aircraft generic columns override the configuration for the ownship
        params.daa.update(ownship.params.extra)

        self.logger.info(f"Computing bands for {ownship.name} with {len(traffic)} traffic aircraft")
        result = self.engine.compute_bands(ownship, traffic, params)
        return walked, render_bands(result, params, precision, self.engine.version())

    def compute_lla(self, daa_data: str, ownship_name: Optional[str], stale_threshold: float,
                    precision: int) -> Tuple[WalkResult, Dict[str, Any]]:
        walked = self.walk(daa_data, ownship_name, stale_threshold)
        table = walked.table
        self.logger.info(f"Computing LLA for {table.ownship_id} with {len(table.traffic_ids)} traffic aircraft")
        return walked, render_lla(table.ownship(), table.traffic(), precision)
