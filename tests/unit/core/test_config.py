from dashboard_measurements.core.config import Settings


def test_defaults():
    s = Settings()

    assert s.measurement_id == "quantity"
    assert s.device_topic_pattern == "device/**"
    assert s.aggregate_default_bucket == "1h"
    assert s.aggregate_default_format == "%m-%d %H:00"
    assert s.aggregate_default_limit == 1
    assert s.realtime_default_interval_seconds == 1.0


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("MESSAGE_COUNT_METRIC", "msg-total")
    monkeypatch.setenv("AGGREGATE_DEFAULT_LIMIT", "12")
    monkeypatch.setenv("APP_LOG_REDACTION_PATTERNS", '["apikey"]')

    s = Settings()

    assert s.message_count_metric == "msg-total"
    assert s.aggregate_default_limit == 12
    assert s.app_log_redaction_patterns == ["apikey"]
