import json
import logging

from telemetry import metrics
from telemetry.logging_utils import JsonFormatter
from telemetry.pii import sanitize_log_payload, scrub_text


def _record(msg, **extra):
    record = logging.LogRecord("chat.dispatcher", logging.INFO, __file__, 10, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_scrub_text_hashes_contact_details():
    text = "Call Laura at +54 11 4555-1234 or laura@inmobiliaria.com, DNI 20-12345678-3"

    scrubbed = scrub_text(text)

    assert "laura@inmobiliaria.com" not in scrubbed
    assert "4555-1234" not in scrubbed
    assert "20-12345678-3" not in scrubbed
    assert "[EMAIL_[HASH:" in scrubbed


def test_scrub_text_redacts_bearer_tokens():
    assert scrub_text("header Bearer eyJhbGci.abc.def") == "header Bearer [REDACTED]"


def test_sensitive_keys_are_redacted():
    cleaned = sanitize_log_payload(
        {
            "agent": "propiedad",
            "token": "jwt-abc",
            "transcript": [{"text": "hola"}],
            "nested": {"password": "secret", "session_id": "user-1"},
        }
    )

    assert cleaned["agent"] == "propiedad"
    assert cleaned["token"] == {"redacted": True, "length": 7}
    assert cleaned["transcript"] == {"redacted": True, "items": 1}
    assert cleaned["nested"]["password"]["redacted"] is True
    assert cleaned["nested"]["session_id"] == "user-1"


def test_json_formatter_emits_extra_fields():
    line = JsonFormatter().format(
        _record("agent_request_failed", agent="persona", status_code=503, authorization="Bearer x")
    )

    payload = json.loads(line)
    assert payload["message"] == "agent_request_failed"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "chat.dispatcher"
    assert payload["agent"] == "persona"
    assert payload["status_code"] == 503
    assert payload["authorization"]["redacted"] is True


def test_metrics_round_trip(isolated_metrics):
    with metrics.timed_operation("agent_chat", "propiedad", "user-1") as timer:
        timer.success = True
    metrics.log_metric("agent_chat", "propiedad", latency_ms=30.0, success=False, session_id="user-1")
    metrics.log_metric("agent_chat", "persona", latency_ms=10.0, success=True)

    rows = metrics.fetch_metrics()
    summary = metrics.summarize_metrics(rows)

    assert (isolated_metrics / metrics.CSV_FILENAME).exists()
    assert len(rows) == 3
    assert rows[0]["session_id"] == "user-1"
    assert summary["sample_size"] == 3
    assert summary["failure_rate"] == {"propiedad": 0.5, "persona": 0.0}
    assert summary["average_latency_ms"]["persona"] == 10.0


def test_fetch_metrics_without_file():
    assert metrics.fetch_metrics() == []
