"""
scheduler モジュールのユニットテスト
"""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from wotd.exceptions import ConfigInvalid
from wotd.models import ScheduleConfig
from wotd.scheduler import (
    DailyScheduler,
    SchedulerState,
    compute_next_trigger,
    load_timezone,
    parse_time_of_day,
)

NEW_YORK = ZoneInfo("America/New_York")
TOKYO = ZoneInfo("Asia/Tokyo")


class FakeFetcher:
    def __init__(self, text="Serendipity (noun) — A happy accident."):
        self.text = text
        self.attempts: list[int] = []

    def get_word_of_the_day(self, max_attempts):
        self.attempts.append(max_attempts)
        return self.text


class FakeClock:
    """wait() で進む時計"""

    def __init__(self, start: datetime):
        self.now = start
        self.waits: list[float] = []

    def __call__(self) -> datetime:
        return self.now

    def wait(self, seconds: float) -> bool:
        self.waits.append(seconds)
        self.now += timedelta(seconds=seconds)
        return False


def make_config(**overrides) -> ScheduleConfig:
    values = {"timezone": "Asia/Tokyo", "time_of_day": "09:00", "destination": "C12345678"}
    values.update(overrides)
    return ScheduleConfig(**values)


class TestParseTimeOfDay:
    @pytest.mark.parametrize("value, expected", [
        ("09:00", (9, 0)),
        ("9:5", (9, 5)),
        ("23:59", (23, 59)),
        (" 7:30 ", (7, 30)),
    ])
    def test_valid(self, value, expected):
        assert parse_time_of_day(value) == expected

    @pytest.mark.parametrize("value", ["", "0900", "9", "nine:00", "24:00", "12:60", "9:00pm"])
    def test_invalid(self, value):
        with pytest.raises(ConfigInvalid):
            parse_time_of_day(value)


class TestLoadTimezone:
    def test_valid(self):
        assert load_timezone("America/New_York") == NEW_YORK

    def test_unknown(self):
        with pytest.raises(ConfigInvalid):
            load_timezone("Mars/Olympus_Mons")


class TestComputeNextTrigger:
    def test_before_slot_returns_today(self):
        now = datetime(2026, 3, 2, 8, 59, tzinfo=TOKYO)
        assert compute_next_trigger(now, "09:00", TOKYO) == datetime(2026, 3, 2, 9, 0, tzinfo=TOKYO)

    def test_after_slot_returns_tomorrow(self):
        now = datetime(2026, 3, 2, 9, 1, tzinfo=TOKYO)
        assert compute_next_trigger(now, "09:00", TOKYO) == datetime(2026, 3, 3, 9, 0, tzinfo=TOKYO)

    def test_exactly_at_slot_returns_tomorrow(self):
        now = datetime(2026, 3, 2, 9, 0, tzinfo=TOKYO)
        assert compute_next_trigger(now, "09:00", TOKYO) == datetime(2026, 3, 3, 9, 0, tzinfo=TOKYO)

    def test_now_in_other_timezone(self):
        # 2026-03-01 23:30 UTC = 2026-03-02 08:30 JST
        now = datetime(2026, 3, 1, 23, 30, tzinfo=timezone.utc)
        result = compute_next_trigger(now, "09:00", TOKYO)
        assert result == datetime(2026, 3, 2, 9, 0, tzinfo=TOKYO)
        assert result.astimezone(timezone.utc) == datetime(2026, 3, 2, 0, 0, tzinfo=timezone.utc)

    def test_keeps_local_time_across_dst(self):
        # 2026-03-08 は米国の夏時間開始日
        now = datetime(2026, 3, 7, 9, 30, tzinfo=NEW_YORK)
        result = compute_next_trigger(now, "09:00", NEW_YORK)
        assert (result.hour, result.minute) == (9, 0)
        assert result.date() == datetime(2026, 3, 8).date()

    @pytest.mark.parametrize("hours", range(0, 48, 5))
    def test_always_strictly_after_now(self, hours):
        now = datetime(2026, 11, 1, 0, 0, tzinfo=timezone.utc) + timedelta(hours=hours, minutes=17)
        result = compute_next_trigger(now, "6:45", NEW_YORK)
        assert result > now
        assert result - now <= timedelta(hours=25)


class TestDailyScheduler:
    def test_disabled_when_config_missing(self):
        scheduler = DailyScheduler(make_config(destination=None), lambda d, t: True, fetcher=FakeFetcher())
        assert scheduler.start() is None
        assert scheduler.state is SchedulerState.DISABLED

    @pytest.mark.parametrize("overrides", [
        {"timezone": "Not/AZone"},
        {"time_of_day": "nine o'clock"},
    ])
    def test_invalid_config_stops_scheduler(self, overrides):
        delivered = []
        scheduler = DailyScheduler(
            make_config(**overrides),
            lambda d, t: delivered.append(t) or True,
            fetcher=FakeFetcher(),
        )
        scheduler.run()
        assert scheduler.state is SchedulerState.STOPPED
        assert delivered == []

    def test_fires_daily_at_trigger_instant(self):
        clock = FakeClock(datetime(2026, 3, 2, 8, 0, tzinfo=TOKYO))
        fired_at: list[datetime] = []
        fetcher = FakeFetcher()

        def deliver(destination, text):
            fired_at.append(clock())
            assert destination == "C12345678"
            assert text == fetcher.text
            if len(fired_at) == 2:
                scheduler.stop()
            return True

        scheduler = DailyScheduler(make_config(), deliver, fetcher=fetcher, clock=clock, wait=clock.wait)
        scheduler.run()

        assert fired_at == [
            datetime(2026, 3, 2, 9, 0, tzinfo=TOKYO),
            datetime(2026, 3, 3, 9, 0, tzinfo=TOKYO),
        ]
        assert fetcher.attempts == [5, 5]
        assert clock.waits == [3600.0, 86400.0]
        assert scheduler.state is SchedulerState.STOPPED

    def test_delivery_failure_does_not_stop_loop(self):
        clock = FakeClock(datetime(2026, 3, 2, 8, 0, tzinfo=TOKYO))
        calls = []

        def deliver(destination, text):
            calls.append(text)
            if len(calls) == 1:
                raise ConnectionError("slack is down")
            scheduler.stop()
            return False

        scheduler = DailyScheduler(make_config(), deliver, fetcher=FakeFetcher(), clock=clock, wait=clock.wait)
        scheduler.run()
        assert len(calls) == 2

    def test_stop_while_waiting(self):
        scheduler = DailyScheduler(make_config(), lambda d, t: True, fetcher=FakeFetcher())
        scheduler.stop()
        scheduler.run()
        assert scheduler.state is SchedulerState.STOPPED

    def test_start_runs_in_background_thread(self):
        scheduler = DailyScheduler(make_config(), lambda d, t: True, fetcher=FakeFetcher())
        thread = scheduler.start()
        try:
            assert thread is not None
            assert thread.daemon
        finally:
            scheduler.stop()
            thread.join(timeout=5)
        assert not thread.is_alive()

    def test_fire_returns_delivery_result(self):
        scheduler = DailyScheduler(make_config(), lambda d, t: False, fetcher=FakeFetcher())
        assert scheduler.fire() is False
        assert scheduler.state is SchedulerState.FIRING
