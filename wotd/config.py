"""
環境変数（.env）から設定を読み込むモジュール。

  SLACK_BOT_TOKEN : chat.postMessage 用の Bot トークン
  WOTD_CHANNEL    : 投稿先のチャンネルID または Incoming Webhook URL
  WOTD_TIMEZONE   : IANA タイムゾーン（未設定なら TZ を使う）
  WOTD_POST_AT    : 投稿時刻 HH:MM（24時間表記・WOTD_TIMEZONE の現地時刻）

WOTD_CHANNEL / WOTD_TIMEZONE / WOTD_POST_AT のどれかが空ならスケジューラは無効。
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from .models import ScheduleConfig
from .utils import get_logger

logger = get_logger(__name__)

WEBHOOK_PREFIX = "https://hooks.slack.com/"


def is_webhook_url(destination: str) -> bool:
    return destination.startswith(WEBHOOK_PREFIX)


@dataclass(frozen=True)
class AppConfig:
    slack_bot_token: str = ""
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)


def _env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def _timezone_from_env() -> str | None:
    """WOTD_TIMEZONE を優先し、未設定なら TZ を使う。どちらから読んだかをログに残す"""
    for key in ("WOTD_TIMEZONE", "TZ"):
        value = _env(key)
        if value:
            logger.info(f"タイムゾーン: {value!r} ({key})")
            return value
    return None


def load_env(require_token: bool = False, require_delivery: bool = True) -> AppConfig:
    """
    環境変数を読み込む。
    .env ファイルがあれば優先的に読み込む（ローカル開発用）。

    Args:
        require_token: True なら SLACK_BOT_TOKEN を必須とする（Slack Bot 応答用）
        require_delivery: False なら定時投稿用のトークン確認を省く（dry_run 用）

    Raises:
        EnvironmentError: 必須の環境変数が未設定
    """
    env_file = Path(".env")
    if env_file.exists():
        load_dotenv(env_file)
        logger.info(".env ファイルを読み込みました")

    token = _env("SLACK_BOT_TOKEN")
    schedule = ScheduleConfig(
        timezone=_timezone_from_env(),
        time_of_day=_env("WOTD_POST_AT") or None,
        destination=_env("WOTD_CHANNEL") or None,
    )

    # チャンネルIDへの定時投稿には Bot トークンが要る（Webhook なら不要）
    needs_token = require_token or (
        require_delivery
        and schedule.enabled
        and not is_webhook_url(schedule.destination)
    )
    if needs_token and not token:
        raise EnvironmentError(
            "以下の環境変数が設定されていません: SLACK_BOT_TOKEN\n"
            ".env.example を参考に .env ファイルを作成してください。"
        )

    return AppConfig(slack_bot_token=token, schedule=schedule)
