"""Command dispatcher for the DAA bands REPL"""

import logging
import math
import re
import sys
from typing import Callable, Dict, Optional, TextIO, Tuple

from .. import __version__
from ..errors import CommandError, DaaBandsError
from ..pipeline.bands_pipeline import BandsPipeline, WalkResult
from ..pipeline.rendering import MAX_PRECISION
from ..publishing.daa_server_client import DaaServerClient, parse_address_port
from ..schemas.daa_schemas import Wind
from ..utils.daa_config import DaaParameters, load_daa_parameters
from .session import SessionState

# Commands with arguments: '<keyword> <args>'
PARAMETER_COMMANDS: Dict[str, Tuple[str, ...]] = {
    'config_folder': ("config-folder", "configFolder"),
    'config': ("config", "conf", "c"),
    'precision': ("precision", "prec", "p"),
    'wind': ("wind", "w"),
    'labels': ("labels", "l"),
    'units': ("units", "u"),
    'traffic': ("traffic", "traffic-data", "traffic-state"),
    'ownship': ("own", "ownship", "ownship-data", "ownship-state"),
    'ownship_name': ("ownship-name",),
    'stale_threshold': ("stale", "stale-threshold"),
    'daa_server': ("daa-server",),
}

# Commands without arguments, matched against the whole line
META_COMMANDS: Dict[str, Tuple[str, ...]] = {
    'reset': ("reset",),
    'version': ("version",),
    'show_table': ("show-table",),
    'compute_bands': ("compute-bands", "bands", "get-bands"),
    'compute_lla': ("compute-lla", "lla", "get-lla"),
    'quit': ("quit", "exit", "bye!"),
    'help': ("help",),
    'settings': ("settings",),
}

_WIND_DEG = re.compile(r"\bdeg\s*:\s*(-?\d+(?:\.\d+)?)")
_WIND_KNOT = re.compile(r"\bknot\s*:\s*(-?\d+(?:\.\d+)?)")

HELP_TEXT = """REPL commands:
  version                      print version
  daa-server <host:port>       set the DAA server address and reconnect
  config-folder <folder>       set the config folder
  config <file.conf>           set the configuration file
  precision <n>                set the precision of output values
  wind { deg: d, knot: m }     set the wind vector
  labels <labels>              set the column labels of the daa table
  units <units>                set the column units of the daa table
  ownship <data>               set the ownship state, in daa format
  ownship-name <name>          set which aircraft is the ownship
  traffic <data>               add or update a traffic state, in daa format
  stale <seconds>              set the stale threshold (0 disables eviction)
  show-table                   print the current daa table
  bands | lla                  compute and publish bands / LLA positions
  reset                        forget ownship and traffic
  settings                     print the current settings
  quit                         leave the REPL"""


def parse_wind(text: str) -> Wind:
    """Extract { deg: D, knot: K }; a missing field is 0"""
    deg = _WIND_DEG.search(text)
    knot = _WIND_KNOT.search(text)
    return Wind(deg=float(deg.group(1)) if deg else 0.0,
                knot=float(knot.group(1)) if knot else 0.0)


class CommandDispatcher:
    """
    Parses one line of operator input and applies it to the session.

    execute() never raises on bad input: every failure is logged and
    reported as False, so the next line starts from a usable session.
    """

    def __init__(self, session: SessionState, pipeline: BandsPipeline,
                 publisher: DaaServerClient, output: Optional[TextIO] = None):
        self.session = session
        self.pipeline = pipeline
        self.publisher = publisher
        self.output = output or sys.stdout
        self.daa_params = DaaParameters()
        self.running = True
        self.logger = logging.getLogger(__name__)

        self._meta: Dict[str, Callable[[], bool]] = {}
        for name, aliases in META_COMMANDS.items():
            for alias in aliases:
                self._meta[alias] = getattr(self, f"_cmd_{name}")
        self._parameterized: Dict[str, Callable[[str], bool]] = {}
        for name, aliases in PARAMETER_COMMANDS.items():
            for alias in aliases:
                self._parameterized[alias] = getattr(self, f"_cmd_{name}")

    def _print(self, text: str):
        print(text, file=self.output)

    def resolve(self, line: str) -> Tuple[Callable, Optional[str]]:
        """Find the handler for a line; raises CommandError when nothing matches"""
        stripped = (line or "").strip()
        meta = stripped[:-1].rstrip() if stripped.endswith(";") else stripped
        if meta in self._meta:
            return self._meta[meta], None
        keyword, sep, args = stripped.partition(" ")
        if sep and keyword in self._parameterized:
            return self._parameterized[keyword], args.strip()
        raise CommandError(f"Unrecognized command '{stripped}'")

    def execute(self, line: str) -> bool:
        """Run one command line; True when it succeeded"""
        try:
            handler, args = self.resolve(line)
            if args is None:
                return handler()
            return handler(args)
        except DaaBandsError as e:
            self.logger.error(f"{type(e).__name__}: {e}")
            return False
        except Exception as e:
            self.logger.error(f"Command failed: {e}", exc_info=self.logger.isEnabledFor(logging.DEBUG))
            return False

    # -- meta commands -------------------------------------------------

    def _cmd_reset(self) -> bool:
        self.session.reset()
        return True

    def _cmd_version(self) -> bool:
        self._print(f"daa-bands-repl {__version__} (engine {self.pipeline.engine.version()})")
        return True

    def _cmd_show_table(self) -> bool:
        self._print(self.session.to_daa())
        return True

    def _cmd_compute_bands(self) -> bool:
        self.logger.info("Computing bands...")
        self._ensure_config()
        walked, bands = self.pipeline.compute_bands(
            self.session.to_daa(), self.session.ownship_name, self.session.stale_threshold,
            self.daa_params, self.session.wind, self.session.precision,
            configuration=str(self.session.config_path))
        self._remember_ownship(walked)
        self.publisher.publish({"type": "bands", "val": bands})
        self.logger.info("Done! bands published")
        return True

    def _cmd_compute_lla(self) -> bool:
        self.logger.info("Computing LLA...")
        self._ensure_config()
        walked, lla = self.pipeline.compute_lla(
            self.session.to_daa(), self.session.ownship_name, self.session.stale_threshold,
            self.session.precision)
        self._remember_ownship(walked)
        self.publisher.publish({"type": "lla", "val": lla})
        self.logger.info("Done! lla published")
        return True

    def _cmd_quit(self) -> bool:
        self.logger.info("Closing repl...")
        self.running = False
        return True

    def _cmd_help(self) -> bool:
        self._print(HELP_TEXT)
        return True

    def _cmd_settings(self) -> bool:
        self.logger.info("--- Settings ---")
        for key, value in self.session.settings().items():
            self.logger.info(f" {key}: {value}")
        self.logger.info(f" config loaded: {self.session.config_loaded} "
                         f"({len(self.daa_params)} parameters)")
        return True

    # -- parameterized commands ----------------------------------------

    def _cmd_config_folder(self, args: str) -> bool:
        self.session.set_config_folder(args)
        return True

    def _cmd_config(self, args: str) -> bool:
        self.session.set_config_file(args)
        return True

    def _cmd_precision(self, args: str) -> bool:
        try:
            precision = int(args)
        except ValueError:
            raise CommandError(f"Invalid precision '{args}'")
        if not 0 <= precision <= MAX_PRECISION:
            raise CommandError(f"Precision must be between 0 and {MAX_PRECISION}, got {precision}")
        self.session.precision = precision
        self.logger.info(f"precision {precision}")
        return True

    def _cmd_wind(self, args: str) -> bool:
        self.session.wind = parse_wind(args)
        self.logger.info(f"wind {{ deg: {self.session.wind.deg}, knot: {self.session.wind.knot} }}")
        return True

    def _cmd_labels(self, args: str) -> bool:
        self.session.set_labels(args)
        self.logger.debug(self.session.to_daa())
        return True

    def _cmd_units(self, args: str) -> bool:
        self.session.units = args
        self.logger.debug(self.session.to_daa())
        return True

    def _cmd_traffic(self, args: str) -> bool:
        if not args.split(",", 1)[0].strip():
            raise CommandError(f"Traffic data without aircraft id: '{args}'")
        name = self.session.set_traffic(args)
        self.logger.debug(f"traffic {name} updated")
        return True

    def _cmd_ownship(self, args: str) -> bool:
        self.session.ownship_line = args
        self.logger.debug("ownship updated")
        return True

    def _cmd_ownship_name(self, args: str) -> bool:
        if not args.strip():
            raise CommandError("Ownship name cannot be empty")
        self.session.ownship_name = args.strip()
        self.logger.info(f"ownship name: {self.session.ownship_name}")
        return True

    def _cmd_stale_threshold(self, args: str) -> bool:
        try:
            value = float(args)
        except ValueError:
            raise CommandError(f"Invalid stale threshold '{args}'")
        if not math.isfinite(value) or value < 0:
            raise CommandError(f"Stale threshold must be a finite value >= 0, got {args}")
        self.session.stale_threshold = value
        self.logger.info(f"Setting stale threshold: {value}")
        return True

    def _cmd_daa_server(self, args: str) -> bool:
        address = parse_address_port(args, self.session.server_address)
        if address is None:
            raise CommandError(f"Unable to set server address/port at '{args}'")
        host, port = address
        self.session.server_address, self.session.server_port = host, port
        self.logger.info(f"DAA Server: {host}:{port}")
        if self.publisher.needs_reconnect(host, port):
            return self.publisher.connect(host, port)
        return True

    # -- helpers ---------------------------------------------------------

    def _ensure_config(self):
        """Load the DAA configuration on first use; raises ConfigError"""
        if self.session.config_loaded:
            return
        path = self.session.config_path
        self.logger.info(f"Loading config file {path}")
        self.daa_params = load_daa_parameters(path)
        self.session.config_loaded = True

    def _remember_ownship(self, walked: WalkResult):
        if not self.session.ownship_name and walked.ownship_id:
            self.session.ownship_name = walked.ownship_id
            self.logger.info(f"Setting ownship name to {walked.ownship_id}")
        if walked.removed:
            self.logger.info(f"Stale traffic ignored: {', '.join(walked.removed)}")
