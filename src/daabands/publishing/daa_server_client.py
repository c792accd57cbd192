"""Socket client publishing bands and LLA results to the DAA server"""

import json
import logging
import socket
from dataclasses import dataclass
from typing import Any, Dict, Optional

import jsonschema

from ..errors import PublishError
from ..pipeline.rendering import BANDS_SECTIONS

BANDS_VAL_SCHEMA = {
    "type": "object",
    "required": [section for section, _ in BANDS_SECTIONS],
    "properties": {section: {"type": "array"} for section, _ in BANDS_SECTIONS},
}

LLA_VAL_SCHEMA = {
    "type": "object",
    "required": ["scenarioName", "length", "lla", "steps"],
    "properties": {
        "scenarioName": {"type": "string"},
        "length": {"type": "integer", "minimum": 0},
        "daa": {"type": "array"},
        "lla": {"type": "object"},
        "steps": {"type": "array", "items": {"type": "string"}},
    },
}

# One line-delimited message on the wire
ENVELOPE_SCHEMA = {
    "type": "object",
    "required": ["type", "val"],
    "properties": {"type": {"enum": ["bands", "lla"]}},
    "oneOf": [
        {"properties": {"type": {"const": "bands"}, "val": BANDS_VAL_SCHEMA}},
        {"properties": {"type": {"const": "lla"}, "val": LLA_VAL_SCHEMA}},
    ],
}


@dataclass
class DaaServerConfig:
    """DAA server connection settings"""
    host: str = "localhost"
    port: int = 8083
    connect_timeout: float = 5.0


def parse_address_port(text: str, default_host: str) -> Optional[tuple]:
    """Parse 'host:port' or 'port'; returns (host, port) or None"""
    text = text.strip()
    if not text:
        return None
    host, sep, port_text = text.rpartition(":")
    if not sep:
        host, port_text = default_host, text
    try:
        port = int(port_text)
    except ValueError:
        return None
    if not 0 < port < 65536:
        return None
    return (host or default_host), port


class DaaServerClient:
    """Persistent outbound connection; one JSON envelope per line, fire-and-forget"""

    def __init__(self, config: Optional[DaaServerConfig] = None):
        self.config = config or DaaServerConfig()
        self.socket: Optional[socket.socket] = None
        self.logger = logging.getLogger(__name__)

    @property
    def connected(self) -> bool:
        return self.socket is not None

    @property
    def address(self) -> str:
        return f"{self.config.host}:{self.config.port}"

    def connect(self, host: Optional[str] = None, port: Optional[int] = None) -> bool:
        """Open a new connection, abandoning any previous one"""
        if host is not None:
            self.config.host = host
        if port is not None:
            self.config.port = port
        self.close()

        self.logger.info(f"Creating socket connection with DAA Server on {self.address}")
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.settimeout(self.config.connect_timeout)
            sock.connect((self.config.host, self.config.port))
            sock.settimeout(None)
        except OSError as e:
            self.logger.error(f"Socket connection error with {self.address}: {e}")
            sock.close()
            return False

        self.socket = sock
        self.logger.info("✅ Socket connection ready")
        return True

    def needs_reconnect(self, host: str, port: int) -> bool:
        return not self.connected or host != self.config.host or port != self.config.port

    def close(self):
        if self.socket is not None:
            try:
                self.socket.close()
            except OSError as e:
                self.logger.debug(f"Error while closing socket: {e}")
            self.socket = None

    def publish(self, envelope: Dict[str, Any]):
        """Validate, serialize and write one envelope; raises PublishError"""
        try:
            jsonschema.validate(envelope, ENVELOPE_SCHEMA)
        except jsonschema.exceptions.ValidationError as e:
            raise PublishError(f"Invalid envelope: {e.message}")

        if self.socket is None:
            raise PublishError(f"Not connected to DAA server {self.address}")

        line = json.dumps(envelope) + "\n"
        try:
            self.socket.sendall(line.encode('utf-8'))
        except OSError as e:
            # broken connection is dropped; the operator reconnects with daa-server
            self.close()
            raise PublishError(f"Write to DAA server {self.address} failed: {e}")

    def send(self, envelope: Dict[str, Any]) -> bool:
        try:
            self.publish(envelope)
            return True
        except PublishError as e:
            self.logger.error(f"❌ {e}")
            return False

    def send_bands(self, bands: Dict[str, Any]) -> bool:
        return self.send({"type": "bands", "val": bands})

    def send_lla(self, lla: Dict[str, Any]) -> bool:
        return self.send({"type": "lla", "val": lla})
