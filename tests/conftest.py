"""Pytest configuration and fixtures"""

import pytest
import tempfile
import io
from pathlib import Path
from unittest.mock import Mock

from daabands.detection.engine import BandsResult, ProximityBandsEngine
from daabands.pipeline.bands_pipeline import BandsPipeline
from daabands.publishing.daa_server_client import DaaServerClient
from daabands.repl.dispatcher import CommandDispatcher
from daabands.repl.session import SessionState


SAMPLE_CONFIG = """# reduced DANTi configuration
lookahead_time = 180 [s]
alerting_time = 55 [s]
early_alerting_time = 75 [s]
DTHR = 4000 [ft]
ZTHR = 450 [ft]
alerter = 1
"""

LABELS = "name, lat, lon, alt, vx, vy, vz, time"
UNITS = "-, [deg], [deg], [ft], [knot], [knot], [fpm], [s]"


@pytest.fixture
def temp_dir():
    """Temporary directory for test files"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def daa_config_folder(temp_dir):
    """Config folder holding DANTi_SL3.conf"""
    (temp_dir / "DANTi_SL3.conf").write_text(SAMPLE_CONFIG)
    return temp_dir


@pytest.fixture
def sample_daa():
    """Ownship and two traffic aircraft at t=100, default labels"""
    return "\n".join([
        LABELS,
        UNITS,
        "AC1, 0.0, 0.0, 5000, 0, 200, 0, 100",
        "AC2, 0.0, 0.05, 5000, -200, 0, 0, 100",
        "AC3, 1.0, 1.0, 9000, 0, 0, 0, 100",
    ]) + "\n"


@pytest.fixture
def mock_publisher():
    """Mock DAA server client that accepts every envelope"""
    client = Mock(spec=DaaServerClient)
    client.connected = True
    client.connect.return_value = True
    client.needs_reconnect.return_value = True
    client.publish.return_value = None
    return client


@pytest.fixture
def mock_engine():
    """Mock bands engine returning an empty result"""
    engine = Mock()
    engine.version.return_value = "mock-1.0"
    engine.compute_bands.return_value = BandsResult(time=0.0)
    return engine


@pytest.fixture
def session(daa_config_folder):
    """Session pointing at the temporary config folder"""
    return SessionState(config_folder=daa_config_folder)


@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
def dispatcher(session, mock_publisher, output):
    """Dispatcher with the reference engine and a mocked publisher"""
    return CommandDispatcher(session, BandsPipeline(ProximityBandsEngine()), mock_publisher, output)
