"""
ランダム単語APIと辞書APIから Word of the Day を組み立てるモジュール。

上流APIはどちらも不安定なため、get_word_of_the_day() が全ての取得エラーを
吸収し、呼び出し側（スケジューラ・Slack Bot）には必ず表示用テキストを返す。
"""

from typing import Optional
from urllib.parse import quote

import requests

from .exceptions import (
    BadStatus,
    DecodeFailure,
    EmptyResult,
    FetchError,
    NetworkFailure,
    NoDefinition,
)
from .models import Definition
from .utils import get_logger, title_case

logger = get_logger(__name__)

RANDOM_WORD_URL = "https://random-word-api.herokuapp.com/word"
DICTIONARY_URL = "https://api.dictionaryapi.dev/api/v2/entries/en/{word}"

HTTP_TIMEOUT = 10  # 秒
DEFAULT_MAX_ATTEMPTS = 5

FETCH_FAILED_MESSAGE = "⚠️ Could not fetch a Word of the Day right now."
NO_DEFINITION_SUFFIX = "(No definition found)"


def select_definition(entries: object, word: str) -> tuple[str, Definition]:
    """
    辞書APIのレスポンスから先頭エントリ・先頭の意味・先頭の定義を選ぶ。

    Returns:
        (正規表記の単語, Definition)

    Raises:
        DecodeFailure: ペイロードの構造が想定外
        NoDefinition: エントリ・意味・定義のいずれかが空
    """
    if not isinstance(entries, list):
        raise DecodeFailure("dictionary response is not a list")
    if not entries:
        raise NoDefinition(word)

    entry = entries[0]
    if not isinstance(entry, dict):
        raise DecodeFailure("dictionary entry is not an object")

    meanings = entry.get("meanings") or []
    if not isinstance(meanings, list):
        raise DecodeFailure("meanings is not a list")
    if not meanings:
        raise NoDefinition(word)

    meaning = meanings[0]
    if not isinstance(meaning, dict):
        raise DecodeFailure("meaning is not an object")

    definitions = meaning.get("definitions") or []
    if not isinstance(definitions, list):
        raise DecodeFailure("definitions is not a list")
    if not definitions:
        raise NoDefinition(word)
    if not isinstance(definitions[0], dict):
        raise DecodeFailure("definition is not an object")

    text = definitions[0].get("definition") or ""
    if not isinstance(text, str) or not text.strip():
        raise NoDefinition(word)

    part_of_speech = meaning.get("partOfSpeech") or ""
    canonical = entry.get("word") or word
    return str(canonical), Definition(text=text.strip(), part_of_speech=str(part_of_speech))


class WordFetcher:
    """
    ランダム単語と定義を取得するクライアント。

    Args:
        session: requests.Session 互換オブジェクト（テスト時に差し替える）
        timeout: 1リクエストあたりのタイムアウト秒数
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = HTTP_TIMEOUT,
        random_word_url: str = RANDOM_WORD_URL,
        dictionary_url: str = DICTIONARY_URL,
    ):
        self.session = session or requests.Session()
        self.timeout = timeout
        self.random_word_url = random_word_url
        self.dictionary_url = dictionary_url

    def _get_json(self, source: str, url: str, params: Optional[dict] = None) -> object:
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise NetworkFailure(f"{source}: {e}") from e

        if response.status_code != requests.codes.ok:
            raise BadStatus(source, response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise DecodeFailure(f"{source}: {e}") from e

    def fetch_random_word(self) -> str:
        """ランダム単語APIから1語取得する"""
        words = self._get_json("random word api", self.random_word_url, params={"number": 1})

        if not isinstance(words, list) or not all(isinstance(w, str) for w in words):
            raise DecodeFailure("random word api: response is not a list of strings")
        if not words or not words[0].strip():
            raise EmptyResult("no word returned")
        return words[0].strip()

    def fetch_definition(self, word: str) -> tuple[str, str]:
        """
        辞書APIから単語の定義を取得する。

        Returns:
            (正規表記の単語, "(品詞) — 定義文")
        """
        url = self.dictionary_url.format(word=quote(word, safe=""))
        entries = self._get_json("dictionaryapi", url)
        canonical, definition = select_definition(entries, word)
        return canonical, definition.format()

    def get_word_of_the_day(self, max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> str:
        """
        定義付きの単語が見つかるまで最大 max_attempts 回試す。

        全試行が失敗した場合はランダム単語をもう1語だけ取得し、
        定義なしとして返す（ループ内で試した単語とは別の単語になりうる）。
        例外は送出しない。
        """
        for attempt in range(1, max_attempts + 1):
            try:
                word = self.fetch_random_word()
            except FetchError as e:
                logger.warning(f"ランダム単語の取得に失敗 (試行 {attempt}/{max_attempts}): {e}")
                continue

            try:
                canonical, definition = self.fetch_definition(word)
            except FetchError as e:
                logger.warning(f"定義の取得に失敗 word='{word}' (試行 {attempt}/{max_attempts}): {e}")
                continue

            logger.info(f"Word of the Day: {canonical}")
            return f"{title_case(canonical)} {definition}"

        try:
            word = self.fetch_random_word()
        except FetchError as e:
            logger.error(f"Word of the Day を取得できませんでした: {e}")
            return FETCH_FAILED_MESSAGE

        logger.info(f"定義が見つからないため単語のみ返します: {word}")
        return f"{title_case(word)} {NO_DEFINITION_SUFFIX}"
