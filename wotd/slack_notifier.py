"""
Word of the Day を Slack に Block Kit 形式で送信するモジュール。

投稿先は2通り:
  - チャンネルID（"C0123..."）: Bot トークンで chat.postMessage
  - Incoming Webhook URL: Webhook に POST
"""

import re
from typing import Optional

import requests

from .config import is_webhook_url
from .utils import get_logger

logger = get_logger(__name__)

SLACK_TIMEOUT = 10  # 秒
SLACK_POST_MESSAGE_URL = "https://slack.com/api/chat.postMessage"
HEADER_TEXT = "📖 Word of the Day"

_WORD_BOUNDARY = re.compile(r" \(| — ")


def build_wotd_blocks(text: str) -> list[dict]:
    """
    Word of the Day テキストを Slack のブロックに変換する。

    形式:
      📖 Word of the Day   (header)
      *Serendipity* (noun) — 定義文
    """
    # 単語部分は最初の " (" か " — " の手前まで（"Ice Cream" のような複数語もある）
    match = _WORD_BOUNDARY.search(text)
    if text.startswith("⚠️") or not match:
        body = text
    else:
        body = f"*{text[:match.start()]}*{text[match.start():]}"

    return [
        {
            "type": "header",
            "text": {
                "type": "plain_text",
                "text": HEADER_TEXT,
                "emoji": True,
            },
        },
        {
            "type": "section",
            "text": {
                "type": "mrkdwn",
                "text": body[:3000],  # Slack の text 上限: 3000文字
            },
        },
    ]


def _send_payload(webhook_url: str, payload: dict) -> None:
    """Slack Incoming Webhook にペイロードを送信する"""
    response = requests.post(
        webhook_url,
        json=payload,
        timeout=SLACK_TIMEOUT,
    )
    response.raise_for_status()


def send_to_webhook(webhook_url: str, text: str) -> bool:
    """Incoming Webhook に Word of the Day を送信する"""
    try:
        _send_payload(webhook_url, {
            "blocks": build_wotd_blocks(text),
            "text": f"{HEADER_TEXT}: {text}",
        })
    except requests.RequestException as e:
        logger.error(f"Slack Webhook への送信に失敗: {e}")
        return False
    logger.info("Slack Webhook への送信が完了しました")
    return True


def post_message(
    token: str,
    channel: str,
    text: str,
    thread_ts: Optional[str] = None,
) -> bool:
    """chat.postMessage でチャンネル（またはスレッド）に投稿する"""
    payload = {
        "channel": channel,
        "text": f"{HEADER_TEXT}: {text}",
        "blocks": build_wotd_blocks(text),
    }
    if thread_ts:
        payload["thread_ts"] = thread_ts

    try:
        resp = requests.post(
            SLACK_POST_MESSAGE_URL,
            headers={"Authorization": f"Bearer {token}", "Content-Type": "application/json"},
            json=payload,
            timeout=SLACK_TIMEOUT,
        )
        data = resp.json()
    except (requests.RequestException, ValueError) as e:
        logger.error(f"Slack投稿失敗 (channel={channel}): {e}")
        return False

    if not data.get("ok"):
        logger.error(f"Slack投稿失敗 (channel={channel}): {data.get('error')}")
        return False
    logger.info(f"Slackへの投稿が完了しました (channel={channel})")
    return True


class SlackDelivery:
    """スケジューラから呼ばれる配信チャネル。送信失敗は False を返すだけ"""

    def __init__(self, token: str = ""):
        self.token = token

    def __call__(self, destination: str, text: str) -> bool:
        if is_webhook_url(destination):
            return send_to_webhook(destination, text)
        return post_message(self.token, destination, text)
