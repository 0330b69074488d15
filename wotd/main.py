"""
Slack Word of the Day - メインエントリポイント

処理の流れ:
  1. 環境変数ロード
  2. スケジューラをバックグラウンドスレッドで起動
  3. 毎日 WOTD_POST_AT（WOTD_TIMEZONE の現地時刻）に
     ランダム単語 + 辞書APIの定義を取得して Slack に投稿
  4. SIGINT / SIGTERM で終了
"""

import sys
import signal
from datetime import datetime, timezone

from .config import load_env
from .fetcher import WordFetcher
from .models import ScheduleConfig
from .scheduler import DailyScheduler, SchedulerState
from .slack_notifier import SlackDelivery
from .utils import get_logger

logger = get_logger(__name__)


def _print_delivery(destination: str, text: str) -> bool:
    """投稿内容をコンソールに出力する（dry_run 用）"""
    print("\n" + "=" * 60)
    print(f"📖 Word of the Day → {destination}")
    print(text)
    print("=" * 60)
    return True


def run_scheduler(now: bool = False, dry_run: bool = False) -> int:
    """
    スケジューラを起動し、終了シグナルまでブロックする。

    Args:
        now: True なら待たずに1回だけ投稿して終了
        dry_run: True の場合 Slack 送信をスキップ（テスト用）

    Returns:
        終了コード
    """
    logger.info(f"=== Word of the Day 起動: {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M UTC')} ===")
    env = load_env(require_delivery=not dry_run)
    schedule: ScheduleConfig = env.schedule

    deliver = _print_delivery if dry_run else SlackDelivery(env.slack_bot_token)
    scheduler = DailyScheduler(schedule, deliver, fetcher=WordFetcher())

    if now:
        if not schedule.destination and not dry_run:
            logger.error("WOTD_CHANNEL が設定されていません")
            return 1
        return 0 if scheduler.fire() else 1

    thread = scheduler.start()
    if thread is None:
        return 0

    def _handle_signal(signum, frame):
        logger.info(f"シグナル {signum} を受信しました。終了します…")
        scheduler.stop()

    previous = {sig: signal.signal(sig, _handle_signal) for sig in (signal.SIGTERM, signal.SIGINT)}
    try:
        # join にタイムアウトを付けないとシグナルハンドラが呼ばれない
        while thread.is_alive():
            thread.join(timeout=1.0)
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)

    if scheduler.state is SchedulerState.STOPPED and not scheduler.stopped:
        # 設定エラーでスケジューラだけが止まった
        logger.warning("スケジューラが停止したため終了します")
    return 0


def main() -> None:
    import argparse

    parser = argparse.ArgumentParser(description="Slack Word of the Day")
    parser.add_argument(
        "--now",
        action="store_true",
        help="待たずに今すぐ1回投稿して終了",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Slack 送信をスキップしてコンソールに出力のみ",
    )
    args = parser.parse_args()

    try:
        code = run_scheduler(now=args.now, dry_run=args.dry_run)
    except EnvironmentError as e:
        logger.error(str(e))
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
