"""
日次スケジューラ: 指定タイムゾーンの指定時刻に Word of the Day を投稿する。

毎サイクル「現在時刻」から次回の投稿時刻を計算し直すため、
固定間隔の sleep のようにズレが蓄積しない。

状態遷移:
  IDLE -> WAITING -> FIRING -> WAITING -> ...
  IDLE -> DISABLED   (設定が揃っていない。エラーではない)
  IDLE -> STOPPED    (タイムゾーン・時刻の設定が不正 / stop() 呼び出し)
"""

import re
import threading
from datetime import datetime, time, timedelta, timezone
from enum import Enum
from typing import Callable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .exceptions import ConfigInvalid
from .fetcher import DEFAULT_MAX_ATTEMPTS, WordFetcher
from .models import ScheduleConfig
from .utils import get_logger

logger = get_logger(__name__)

_TIME_OF_DAY = re.compile(r"^\s*(\d{1,2}):(\d{1,2})\s*$")


class SchedulerState(Enum):
    IDLE = "idle"
    WAITING = "waiting"
    FIRING = "firing"
    DISABLED = "disabled"
    STOPPED = "stopped"


def parse_time_of_day(value: str) -> tuple[int, int]:
    """'H:M' 形式の時刻を (時, 分) に変換する"""
    match = _TIME_OF_DAY.match(value or "")
    if not match:
        raise ConfigInvalid(f"投稿時刻は H:M 形式で指定してください: {value!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise ConfigInvalid(f"投稿時刻が範囲外です: {value!r}")
    return hour, minute


def load_timezone(name: str) -> ZoneInfo:
    """IANA タイムゾーン名から ZoneInfo を返す"""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, TypeError) as e:
        raise ConfigInvalid(f"不正なタイムゾーン: {name!r}") from e


def compute_next_trigger(now: datetime, time_of_day: str, tz: ZoneInfo) -> datetime:
    """
    now より厳密に後の、次の投稿時刻を返す。

    今日の time_of_day（tz の現地時刻）が now 以前なら翌日の同時刻。
    比較は UTC で行う（同じ tzinfo 同士だと壁時計の比較になるため）。

    Args:
        now: 現在時刻（naive なら UTC とみなす）
        time_of_day: 'H:M'
        tz: 投稿するタイムゾーン
    """
    hour, minute = parse_time_of_day(time_of_day)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    today = now.astimezone(tz).date()
    trigger = datetime.combine(today, time(hour, minute), tzinfo=tz)
    if trigger.astimezone(timezone.utc) <= now.astimezone(timezone.utc):
        trigger = datetime.combine(today + timedelta(days=1), time(hour, minute), tzinfo=tz)
    return trigger


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DailyScheduler:
    """
    Word of the Day を毎日決まった時刻に投稿するバックグラウンドタスク。

    Args:
        config: 投稿先・タイムゾーン・時刻
        deliver: (投稿先, テキスト) -> 成否。失敗してもループは止めない
        fetcher: get_word_of_the_day(max_attempts) を持つオブジェクト
        clock: 現在時刻を返す関数（aware datetime）
        wait: 指定秒数待機し、停止要求があれば True を返す関数
    """

    def __init__(
        self,
        config: ScheduleConfig,
        deliver: Callable[[str, str], bool],
        fetcher: Optional[WordFetcher] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        clock: Callable[[], datetime] = _utc_now,
        wait: Optional[Callable[[float], bool]] = None,
    ):
        self.config = config
        self.deliver = deliver
        self.fetcher = fetcher or WordFetcher()
        self.max_attempts = max_attempts
        self.clock = clock
        self._stop_event = threading.Event()
        self._wait = wait or self._stop_event.wait
        self._thread: Optional[threading.Thread] = None
        self.state = SchedulerState.IDLE

    def start(self) -> Optional[threading.Thread]:
        """スケジューラをデーモンスレッドで起動する。設定が揃っていなければ None"""
        if not self.config.enabled:
            logger.info("スケジューラをスキップします (WOTD_CHANNEL/WOTD_TIMEZONE/WOTD_POST_AT が未設定)")
            self.state = SchedulerState.DISABLED
            return None

        self._thread = threading.Thread(target=self.run, name="wotd-scheduler", daemon=True)
        self._thread.start()
        logger.info(f"スケジューラを起動しました: 毎日 {self.config.time_of_day} ({self.config.timezone})")
        return self._thread

    def stop(self) -> None:
        """次の待機解除でループを終了させる"""
        self._stop_event.set()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def run(self) -> None:
        """投稿ループ本体（ブロッキング）"""
        if not self.config.enabled:
            self.state = SchedulerState.DISABLED
            return

        try:
            tz = load_timezone(self.config.timezone)
            parse_time_of_day(self.config.time_of_day)
        except ConfigInvalid as e:
            logger.error(f"スケジューラを停止します: {e}")
            self.state = SchedulerState.STOPPED
            return

        while not self.stopped:
            next_run = compute_next_trigger(self.clock(), self.config.time_of_day, tz)
            logger.info(f"次回の Word of the Day: {next_run.strftime('%Y-%m-%d %H:%M %Z')}")

            self.state = SchedulerState.WAITING
            if not self._sleep_until(next_run):
                break
            self.fire()

        self.state = SchedulerState.STOPPED
        logger.info("スケジューラを停止しました")

    def _sleep_until(self, target: datetime) -> bool:
        """target まで待機する。停止要求で中断されたら False"""
        target_utc = target.astimezone(timezone.utc)
        while True:
            remaining = (target_utc - self.clock().astimezone(timezone.utc)).total_seconds()
            if remaining <= 0:
                return not self.stopped
            if self._wait(remaining) or self.stopped:
                return False

    def fire(self) -> bool:
        """Word of the Day を1回取得して投稿する"""
        self.state = SchedulerState.FIRING
        text = self.fetcher.get_word_of_the_day(self.max_attempts)
        try:
            ok = self.deliver(self.config.destination, text)
        except Exception as e:
            logger.error(f"Word of the Day の送信に失敗: {e}", exc_info=True)
            return False

        if not ok:
            logger.error(f"Word of the Day の送信に失敗 (destination={self.config.destination})")
        return bool(ok)
