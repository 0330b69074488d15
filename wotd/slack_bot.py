"""
Slack Bot 応答モジュール
========================
Slack の /wotd コマンドやメンションを受けて、Word of the Day をスレッドに返信する。

GitHub Actions などのリレーから呼び出される:
  python -m wotd.slack_bot --channel "C12345678" --thread "1234567890.123456"
"""

import sys
import argparse
from typing import Optional

from .config import load_env
from .fetcher import DEFAULT_MAX_ATTEMPTS, WordFetcher
from .slack_notifier import post_message
from .utils import get_logger

logger = get_logger(__name__)


def run_bot(
    channel: str,
    thread_ts: Optional[str] = None,
    dry_run: bool = False,
    fetcher: Optional[WordFetcher] = None,
) -> bool:
    """Word of the Day を取得してリクエスト元に返信する"""
    fetcher = fetcher or WordFetcher()
    reply = fetcher.get_word_of_the_day(DEFAULT_MAX_ATTEMPTS)
    logger.info(f"返信内容: {reply[:100]}")

    if dry_run:
        print(reply)
        return True

    env = load_env(require_token=True)
    return post_message(env.slack_bot_token, channel, reply, thread_ts=thread_ts)


def main() -> None:
    parser = argparse.ArgumentParser(description="Slack Bot: Word of the Day 応答")
    parser.add_argument("--channel", required=True, help="Slack チャンネルID")
    parser.add_argument("--thread",  default=None, help="Slack スレッドts（返信先）")
    parser.add_argument("--dry-run", action="store_true", help="Slack 送信をスキップしてコンソールに出力のみ")
    args = parser.parse_args()

    try:
        ok = run_bot(channel=args.channel, thread_ts=args.thread, dry_run=args.dry_run)
    except Exception as e:
        logger.error(f"Bot実行エラー: {e}", exc_info=True)
        sys.exit(1)
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
