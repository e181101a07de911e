"""Tests for diagnostics — log dir validation, JSON logs, PII scrubbing, consent."""

import json
import logging
import os
import sys

import pytest

import diagnostics
from diagnostics import (
    JSONFormatter,
    _validate_log_dir,
    setup_structured_logging,
    strip_pii,
    telemetry_consented,
)


@pytest.fixture
def fake_home(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("APP_LOG_DIR", raising=False)
    return tmp_path


class TestLogDir:
    def test_default(self, fake_home):
        assert _validate_log_dir("") == str(fake_home / ".dithertone" / "logs")

    def test_inside_app_dir(self, fake_home):
        inside = fake_home / ".dithertone" / "custom"
        assert _validate_log_dir(str(inside)) == os.path.realpath(inside)

    def test_outside_app_dir_rejected(self, fake_home):
        assert _validate_log_dir("/tmp/elsewhere") == str(fake_home / ".dithertone" / "logs")

    def test_prefix_trick_rejected(self, fake_home):
        sneaky = str(fake_home / ".dithertone-evil")
        assert _validate_log_dir(sneaky) == str(fake_home / ".dithertone" / "logs")


def test_json_formatter_fields():
    record = logging.LogRecord("engine.pipeline", logging.WARNING, __file__, 1, "took %dms", (300,), None)
    entry = json.loads(JSONFormatter().format(record))
    assert entry["level"] == "WARNING"
    assert entry["logger"] == "engine.pipeline"
    assert entry["message"] == "took 300ms"
    assert "exception" not in entry


def test_json_formatter_exception():
    try:
        raise ValueError("bad frame")
    except ValueError:
        record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())
    entry = json.loads(JSONFormatter().format(record))
    assert entry["exception"]["type"] == "ValueError"
    assert "bad frame" in entry["exception"]["traceback"]


def test_setup_structured_logging_writes_json(fake_home):
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    try:
        log_dir = setup_structured_logging()
        assert log_dir == str(fake_home / ".dithertone" / "logs")
        logging.getLogger("engine.pipeline").warning("slow stage")
        for handler in root.handlers:
            handler.flush()
        lines = (fake_home / ".dithertone" / "logs" / diagnostics.LOG_NAME).read_text().splitlines()
        assert json.loads(lines[-1])["message"] == "slow stage"
    finally:
        for handler in root.handlers[:]:
            if handler not in before:
                root.removeHandler(handler)
                handler.close()
        root.setLevel(level)


class TestStripPii:
    def test_home_path_replaced(self, fake_home):
        event = {"message": f"failed reading {fake_home}/photo.png"}
        assert "<HOME>" in strip_pii(event, {})["message"]

    def test_user_paths_redacted(self):
        event = {"message": "at /Users/alice/x.png and /home/bob/y.png"}
        message = strip_pii(event, {})["message"]
        assert "alice" not in message
        assert "bob" not in message

    def test_sensitive_keys_scrubbed(self):
        event = {
            "extra": {"api_token": "abc", "frame_shape": [2, 2, 4]},
            "contexts": {"stage": {"sentry_dsn": "https://k@x", "stage": "dither"}},
        }
        out = strip_pii(event, {})
        assert out["extra"]["api_token"] == "<REDACTED>"
        assert out["extra"]["frame_shape"] == [2, 2, 4]
        assert out["contexts"]["stage"]["sentry_dsn"] == "<REDACTED>"
        assert out["contexts"]["stage"]["stage"] == "dither"


class TestConsent:
    def test_no_file(self, fake_home):
        assert telemetry_consented() is False

    def test_yes(self, fake_home):
        (fake_home / ".dithertone").mkdir()
        (fake_home / ".dithertone" / "telemetry_consent").write_text("yes\n")
        assert telemetry_consented() is True

    def test_other_value(self, fake_home):
        (fake_home / ".dithertone").mkdir()
        (fake_home / ".dithertone" / "telemetry_consent").write_text("no")
        assert telemetry_consented() is False
