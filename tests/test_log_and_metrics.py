import io
import json
import logging

import pytest

from detachable import create
from detachable.core import log
from detachable.core import metrics


def test_json_handler_writes_one_object_per_line():
    buf = io.StringIO()
    handler = log.make_handler(json_mode=True, stream=buf)
    lg = log.get("test.json")
    lg.addHandler(handler)
    try:
        lg.error("hello %s", "world")
    finally:
        lg.removeHandler(handler)
    obj = json.loads(buf.getvalue().strip().splitlines()[-1])
    assert obj["msg"] == "hello world"
    assert obj["lvl"] == "ERROR"
    assert obj["name"] == "detachable.test.json"
    assert obj["where"].startswith("test_log_and_metrics.py:")


def test_setup_json_mode_installs_json_formatter():
    try:
        log.setup("INFO", json_mode=True, force=True)
        handlers = logging.getLogger("detachable").handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0].formatter, log.JsonFormatter)
    finally:
        log.setup(force=True)


def test_get_namespaces_loggers():
    assert log.get("group").name == "detachable.group"
    assert log.get("detachable.scenario").name == "detachable.scenario"


def test_set_level_unknown_falls_back_to_info():
    try:
        log.set_level("nope")
        assert logging.getLogger("detachable").level == logging.INFO
        log.set_level("debug")
        assert logging.getLogger("detachable").level == logging.DEBUG
    finally:
        log.setup(force=True)


def test_handler_latency_is_recorded():
    group = create(lambda: None)
    group.primary_wrapper()
    group.detach()
    group.primary_wrapper()
    lat = metrics.snapshot()[metrics.HANDLER_MS]
    assert lat["count"] == 1
    assert lat["max"] >= lat["mean"] >= 0.0


def test_reading_a_counter_does_not_register_it():
    assert metrics.value(metrics.DETACHES) == 0
    assert metrics.value(metrics.DISPATCHES, "suppressed") == 0
    assert metrics.snapshot()["counters"] == {}


def test_unknown_metric_or_label_is_rejected():
    with pytest.raises(ValueError):
        metrics.inc("detachable_other_total")
    with pytest.raises(ValueError):
        metrics.inc(metrics.GROUPS_CREATED, "7")


def test_emit_now_logs_counters(caplog):
    create(lambda: None).detach()
    with caplog.at_level(logging.INFO, logger="detachable.metrics"):
        metrics.emit_now()
    text = "\n".join(r.getMessage() for r in caplog.records)
    assert "detachable_detach_total=1" in text
    assert "detachable_groups_created_total{kind=single}=1" in text


def test_emit_now_json_mode(caplog):
    create([lambda: None, lambda: None])
    with caplog.at_level(logging.INFO, logger="detachable.metrics"):
        metrics.emit_now(json_mode=True)
    dumped = [r.getMessage() for r in caplog.records if r.getMessage().startswith("{")]
    snap = json.loads(dumped[-1])
    assert snap["counters"] == {"detachable_groups_created_total{kind=multi}": 1}
