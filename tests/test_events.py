import logging

from heatgraph import DEFAULT_EMIT, EventRecorder, log_event


def test_recorder_collects_structured_payload():
    rec = EventRecorder()
    log_event(rec, "warn", "something odd", node="a.ts")

    (kind, payload), = rec.events
    assert kind == "log"
    assert payload["level"] == "warn"
    assert payload["msg"] == "something odd"
    assert payload["node"] == "a.ts"
    assert "ts" in payload
    assert rec.messages("warn") == ["something odd"]
    assert rec.messages("info") == []
    assert rec.of_kind("log") == [payload]


def test_events_are_mirrored_to_logging(caplog):
    with caplog.at_level(logging.INFO, logger="heatgraph"):
        log_event(None, "info", "hello")
    assert "hello" in caplog.text


def test_broken_emitter_does_not_raise(caplog):
    def broken(kind, payload):
        raise RuntimeError("sink down")

    with caplog.at_level(logging.ERROR, logger="heatgraph"):
        log_event(broken, "info", "still fine")
    assert "Emitter failed" in caplog.text


def test_default_emit_is_noop():
    assert DEFAULT_EMIT("log", {"msg": "x"}) is None
