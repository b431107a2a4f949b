# tests/conftest.py
import os
import logging
import pytest

from detachable.core import log
from detachable.core import metrics
from detachable.core.metrics import start_exporter, stop_exporter


@pytest.fixture(scope="session", autouse=True)
def _bootstrap_logging_and_metrics():
    # LOG_LEVEL / LOG_JSON / .env if available
    log.setup()

    interval = float(os.getenv("METRICS_INTERVAL_TEST", "1.0"))
    json_mode = (os.getenv("LOG_JSON", "0") == "1")
    start_exporter(interval_sec=interval, json_mode=json_mode,
                   logger=logging.getLogger("detachable.metrics"))
    yield
    stop_exporter()


@pytest.fixture(autouse=True)
def _fresh_metrics():
    metrics.reset()
    yield


class Recorder:
    """Callable that remembers every call it receives."""
    def __init__(self, name="rec", ret=None):
        self.__name__ = name
        self.calls = []
        self.ret = ret

    def __call__(self, *args, **kwargs):
        self.calls.append((args, kwargs))
        return self.ret

    @property
    def count(self):
        return len(self.calls)


@pytest.fixture
def recorder():
    return Recorder
