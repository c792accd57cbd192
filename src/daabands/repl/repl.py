"""Interactive read-eval loop"""

import logging
import sys
from typing import Optional, TextIO

from .dispatcher import CommandDispatcher

PROMPT = " >> "


class DaaBandsRepl:
    """Reads one command per line and hands it to the dispatcher until quit or EOF"""

    def __init__(self, dispatcher: CommandDispatcher, input_stream: Optional[TextIO] = None,
                 output: Optional[TextIO] = None, prompt: str = PROMPT):
        self.dispatcher = dispatcher
        self.input_stream = input_stream or sys.stdin
        self.output = output or sys.stdout
        self.prompt = prompt
        self.logger = logging.getLogger(__name__)

    def read_line(self) -> Optional[str]:
        self.output.write(self.prompt)
        self.output.flush()
        line = self.input_stream.readline()
        if line == "":
            return None
        return line.strip()

    def start(self) -> int:
        """Run the loop; returns the number of commands that failed"""
        failures = 0
        try:
            while self.dispatcher.running:
                line = self.read_line()
                if line is None:
                    self.logger.debug("End of input")
                    break
                if not line:
                    continue
                if not self.dispatcher.execute(line):
                    failures += 1
        except KeyboardInterrupt:
            self.logger.info("Operation cancelled by user")
        finally:
            self.dispatcher.publisher.close()
            self.logger.info("bye!")
        return failures
