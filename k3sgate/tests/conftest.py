import logging

import pytest

from k3sgate.config import Config
from k3sgate.modules.gate import settings as gate_settings
from k3sgate.modules.gate.models import Target

from .helpers import FakeClock

GATE_ENV_VARS = (
    "MAX_ATTEMPTS", "BASE_DELAY", "MAX_DELAY", "TIMEOUT", "GRACE", "MAX_WORKERS",
    "SSH_TIMEOUT", "CLOUD_INIT_TIMEOUT", "API_TIMEOUT", "PROBE_TIMEOUT",
)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    for var in GATE_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(gate_settings, "DEFAULT_CONFIG_PATHS", [])
    monkeypatch.setattr(Config, "EXPORT_ENV_FILE", None)
    monkeypatch.setattr(Config, "REPORT_DIR", str(tmp_path))
    monkeypatch.setattr(Config, "REPORT_FORMAT", "text")
    yield
    # CLI runs attach a console handler to a stream that is closed afterwards
    root = logging.getLogger()
    for handler in [h for h in root.handlers if getattr(h, "_k3sgate", False)]:
        root.removeHandler(handler)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def m1():
    return Target("10.0.0.1", "m1")


@pytest.fixture
def m2():
    return Target("10.0.0.2", "m2")
