"""Tests for alert rendering and delivery."""
from pingpilot.schemas.monitoring import AlertConfig, MonitoringConfig
from pingpilot.services.alerter import AlertKind
from pingpilot.services.checker import CheckResult
from pingpilot.services.notifier import Notifier, build_message
from tests.fakes import FakeSender, InMemoryStore, make_target, utc

NOW = utc(2026, 10, 19, 12, 0)


def test_down_message():
    target = make_target("https://shop.example.com", name="Shop")
    result = CheckResult(status="down", error_message="HTTP 503: Service Unavailable")

    message = build_message(target, AlertKind.DOWN, result, 1000, NOW)

    assert message.subject == "Alert: Shop is DOWN"
    assert "https://shop.example.com" in message.html
    assert "HTTP 503: Service Unavailable" in message.html
    assert "2026-10-19 12:00:00" in message.html
    assert f"/servers/{target.id}" in message.html


def test_recovery_message():
    target = make_target(name="Shop")

    message = build_message(target, AlertKind.RECOVERED, CheckResult(status="up", response_time_ms=120), 1000, NOW)

    assert message.subject == "Recovery: Shop is UP"
    assert "120ms" in message.html


def test_slow_message_shows_time_and_threshold():
    target = make_target(name="Shop")

    message = build_message(target, AlertKind.SLOW, CheckResult(status="up", response_time_ms=1500), 1000, NOW)

    assert message.subject == "Warning: Shop - High Response Time"
    assert "Current Response Time:</strong> 1500ms" in message.html
    assert "Threshold:</strong> 1000ms" in message.html


def test_values_are_escaped():
    target = make_target("https://example.com/?a=<b>", name="<script>")

    message = build_message(target, AlertKind.DOWN, CheckResult(status="down", error_message="<oops>"), 1000, NOW)

    assert "<script>" not in message.html
    assert "&lt;oops&gt;" in message.html


async def test_notify_sends_to_every_contact():
    target = make_target(emails=["a@example.com", "b@example.com"])
    store = InMemoryStore([target])
    sender = FakeSender()

    delivered = await Notifier(store, sender).notify(target, AlertKind.DOWN, CheckResult(status="down"), NOW)

    assert delivered is True
    assert [m["to"] for m in sender.sent] == ["a@example.com", "b@example.com"]
    assert len(store.alerts) == 2


async def test_all_contacts_failing_is_not_delivered():
    target = make_target(emails=["a@example.com"])
    store = InMemoryStore([target])

    delivered = await Notifier(store, FakeSender(failing=["a@example.com"])).notify(
        target, AlertKind.DOWN, CheckResult(status="down"), NOW
    )

    assert delivered is False
    assert store.alerts[0].success == 0


async def test_phone_only_is_never_delivered():
    config = MonitoringConfig(alerts=AlertConfig(email=False, phone=True))
    target = make_target(monitoring=config, phones=["+15550100"])
    sender = FakeSender()

    delivered = await Notifier(InMemoryStore([target]), sender).notify(
        target, AlertKind.DOWN, CheckResult(status="down"), NOW
    )

    assert delivered is False
    assert sender.sent == []


async def test_alert_log_failure_does_not_break_delivery():
    target = make_target(emails=["a@example.com"])
    store = InMemoryStore([target])

    async def broken(alert):
        raise ConnectionError("log write failed")

    store.record_alert = broken
    sender = FakeSender()

    delivered = await Notifier(store, sender).notify(target, AlertKind.DOWN, CheckResult(status="down"), NOW)

    assert delivered is True
    assert len(sender.sent) == 1
