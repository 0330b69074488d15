"""
共通ユーティリティ: ロギング・文字列整形
"""

import re
import logging

_WORD_START = re.compile(r"(^|[\s\-])(\w)")


def get_logger(name: str) -> logging.Logger:
    """標準フォーマットのロガーを返す"""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    return logging.getLogger(name)


def title_case(text: str) -> str:
    """
    単語ごとの先頭文字だけを大文字にする。

    str.title() と違い、2文字目以降はそのまま残す（"don't" -> "Don't"）。
    """
    return _WORD_START.sub(lambda m: m.group(1) + m.group(2).upper(), text)
