import logging
import os

os.environ["ENVIRONMENT"] = "test"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from structlog.testing import CapturingLogger

from purchase_api.core.config import PurchaseSettings
from purchase_api.main import create_app

_SETTINGS_ENV = (
    "PORT",
    "SERVICE_PORT",
    "HOST",
    "GREETING",
    "API_MESSAGE",
    "CORS_ORIGINS",
    "METRICS_ENABLED",
    "METRICS_NAMESPACE",
    "REQUEST_TIMEOUT_SECONDS",
    "MAX_BODY_BYTES",
    "SECURITY_HEADERS_ENABLED",
)


@pytest.fixture(autouse=True)
def _clean_settings_env(monkeypatch):
    for name in _SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)


def make_settings(**overrides) -> PurchaseSettings:
    return PurchaseSettings(_env_file=None, **overrides)


def logged_events(logger: CapturingLogger, method: str | None = None) -> list[str]:
    return [
        call.args[0]
        for call in logger.calls
        if call.args and (method is None or call.method_name == method)
    ]


@pytest.fixture
def settings() -> PurchaseSettings:
    return make_settings()


@pytest.fixture
def logger() -> CapturingLogger:
    return CapturingLogger()


@pytest.fixture
def app(settings, logger):
    return create_app(settings, logger=logger)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
