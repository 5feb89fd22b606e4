"""
Structlog configuration tests.
"""

import json
import logging

import structlog

from app.core.config import settings
from app.core.logging import configure_logging


def test_json_events_carry_logger_name(monkeypatch, caplog):
    monkeypatch.setattr(settings, "log_format", "json")
    monkeypatch.setattr(settings, "log_level", "INFO")

    configure_logging()
    try:
        with caplog.at_level(logging.INFO):
            structlog.get_logger("app.services.style_analyzer").info(
                "Style profile analyzed", user_id="u1", total_posts=3
            )
    finally:
        structlog.reset_defaults()

    [record] = [r for r in caplog.records if r.name == "app.services.style_analyzer"]
    event = json.loads(record.getMessage())
    assert event["event"] == "Style profile analyzed"
    assert event["logger"] == "app.services.style_analyzer"
    assert event["level"] == "info"
    assert event["user_id"] == "u1"
    assert "timestamp" in event
