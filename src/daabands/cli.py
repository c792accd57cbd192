#!/usr/bin/env python3
"""Command line entry point for the DAA bands REPL"""

import sys
import argparse
import logging
from pathlib import Path
from typing import List

from .detection.engine import ProximityBandsEngine
from .errors import DaaBandsError
from .pipeline.bands_pipeline import BandsPipeline
from .publishing.daa_server_client import DaaServerClient, DaaServerConfig, parse_address_port
from .repl.dispatcher import CommandDispatcher
from .repl.repl import DaaBandsRepl
from .repl.session import SessionState
from .utils.config import Config


def setup_cli_logging(verbose: bool = False):
    """Setup CLI logging"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


class DaaBandsCLI:
    """Builds the session from settings and flags, then runs the REPL"""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def run(self, args: List[str] = None):
        """Main entry point"""
        if args is None:
            args = sys.argv[1:]

        parser = self._create_parser()
        parsed_args = parser.parse_args(args)

        setup_cli_logging(parsed_args.verbose)

        try:
            return self._start_repl(parsed_args)
        except KeyboardInterrupt:
            self.logger.info("Operation cancelled by user")
            return 1
        except DaaBandsError as e:
            self.logger.error(f"Startup failed: {e}", exc_info=parsed_args.verbose)
            return 1
        except Exception as e:
            self.logger.error(f"Command failed: {e}", exc_info=parsed_args.verbose)
            return 1

    def _create_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog='daa-bands-repl',
            description='Interactive DAA bands computation with a socket publisher',
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  daa-bands-repl
  daa-bands-repl --daa-server localhost:8083 --config DANTi_SL3.conf
  daa-bands-repl --settings repl.yaml --no-connect
            """
        )

        parser.add_argument('--verbose', '-v', action='store_true',
                          help='Enable verbose logging')
        parser.add_argument('--settings', type=Path,
                          help='YAML file with REPL settings')
        parser.add_argument('--config',
                          help='DAA configuration file name')
        parser.add_argument('--config-folder', type=Path,
                          help='Folder holding DAA configuration files')
        parser.add_argument('--daa-server',
                          help='DAA server address, host:port or port')
        parser.add_argument('--no-connect', action='store_true',
                          help='Do not connect to the DAA server at startup')
        return parser

    def _build_session(self, args) -> SessionState:
        config = Config.load(args.settings)
        session = SessionState.from_config(config)
        if args.config_folder:
            session.set_config_folder(str(args.config_folder))
        if args.config:
            session.set_config_file(args.config)
        if args.daa_server:
            address = parse_address_port(args.daa_server, session.server_address)
            if address is None:
                self.logger.warning(f"Ignoring invalid DAA server address '{args.daa_server}'")
            else:
                session.server_address, session.server_port = address
        return session

    def _start_repl(self, args) -> int:
        session = self._build_session(args)
        for key, value in session.settings().items():
            self.logger.info(f"{key}: {value}")
        if not session.config_path.is_file():
            self.logger.warning(f"⚠️ DAA configuration {session.config_path} not found, "
                                f"use 'config-folder <folder>' or --config-folder to point at it")

        publisher = DaaServerClient(DaaServerConfig(
            host=session.server_address,
            port=session.server_port,
            connect_timeout=session.connect_timeout,
        ))
        if not args.no_connect and not publisher.connect():
            self.logger.warning("⚠️ DAA server not reachable, use 'daa-server <host:port>' to retry")

        pipeline = BandsPipeline(ProximityBandsEngine())
        dispatcher = CommandDispatcher(session, pipeline, publisher)
        self.logger.info("🚀 REPL ready, type 'help' for the list of commands")
        DaaBandsRepl(dispatcher).start()
        return 0


def main():
    """CLI entry point"""
    cli = DaaBandsCLI()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
