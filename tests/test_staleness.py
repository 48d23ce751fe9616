from datetime import datetime, timedelta, timezone

from riverguard.domain.models import DeviceStatus
from riverguard.domain.staleness import evaluate_status

from tests.conftest import NOW


def test_fresh_reading_is_online() -> None:
    assert evaluate_status(NOW - timedelta(seconds=10), NOW) is DeviceStatus.ONLINE


def test_exactly_five_minutes_is_still_online() -> None:
    assert evaluate_status(NOW - timedelta(minutes=5), NOW) is DeviceStatus.ONLINE


def test_just_over_five_minutes_is_offline() -> None:
    assert evaluate_status(NOW - timedelta(minutes=5, milliseconds=1), NOW) is DeviceStatus.OFFLINE


def test_six_minute_old_reading_is_offline() -> None:
    assert evaluate_status(NOW - timedelta(minutes=6), NOW) is DeviceStatus.OFFLINE


def test_reading_from_the_future_is_online() -> None:
    """Sensor clock ahead of ours"""
    assert evaluate_status(NOW + timedelta(minutes=30), NOW) is DeviceStatus.ONLINE


def test_missing_timestamp_is_offline() -> None:
    assert evaluate_status(None, NOW) is DeviceStatus.OFFLINE


def test_naive_timestamp_is_treated_as_utc() -> None:
    naive = datetime(2026, 3, 14, 9, 28, 0)
    assert evaluate_status(naive, NOW) is DeviceStatus.ONLINE


def test_offset_timestamps_compare_as_instants() -> None:
    lagos = timezone(timedelta(hours=1))
    ts = datetime(2026, 3, 14, 10, 27, 0, tzinfo=lagos)  # 09:27 UTC
    assert evaluate_status(ts, NOW) is DeviceStatus.ONLINE


def test_custom_window() -> None:
    ts = NOW - timedelta(seconds=45)
    assert evaluate_status(ts, NOW, window=timedelta(seconds=30)) is DeviceStatus.OFFLINE
