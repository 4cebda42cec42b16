from dashboard_measurements.infrastructure.messages import parse_device_message


def test_parse_full_payload():
    message = parse_device_message(
        "device/p1/d1/message/property/report",
        {
            "messageType": "REPORT_PROPERTY",
            "deviceId": "d1",
            "headers": {"productId": "p1"},
            "timestamp": 1710000000000,
            "properties": {"temp": 21.5},
        },
    )

    assert message is not None
    assert message.product_id == "p1"
    assert message.device_id == "d1"
    assert message.message_type == "REPORT_PROPERTY"
    assert message.timestamp == 1710000000000
    assert message.payload["properties"] == {"temp": 21.5}


def test_top_level_product_id_and_iso_timestamp():
    message = parse_device_message(
        "device/p9/d2/online",
        {"productId": "p9", "timestamp": "2025-01-01T00:00:00Z"},
    )

    assert message is not None
    assert message.product_id == "p9"
    assert message.timestamp == 1735689600000


def test_missing_timestamp_uses_arrival_time():
    message = parse_device_message("device/p1/d1/online", {})

    assert message is not None
    assert message.timestamp > 1_700_000_000_000
    assert message.product_id is None


def test_bad_timestamp_warns(caplog):
    caplog.set_level("WARNING")

    message = parse_device_message("device/p1", {"timestamp": "not-a-ts"})

    assert message is not None
    assert any("invalid_message_timestamp" in r.message for r in caplog.records)


def test_non_object_payload_is_dropped(caplog):
    caplog.set_level("WARNING")

    assert parse_device_message("device/p1", None) is None
    assert parse_device_message("device/p1", ["a"]) is None
    assert any("unparseable_device_message" in r.message for r in caplog.records)
