"""
Word of the Day の例外定義
"""


class WotdError(Exception):
    """このパッケージの例外の基底クラス"""


class FetchError(WotdError):
    """上流API（ランダム単語・辞書）からの取得失敗"""


class NetworkFailure(FetchError):
    """接続エラー・タイムアウト"""


class BadStatus(FetchError):
    """HTTP ステータスが 200 以外"""

    def __init__(self, source: str, status_code: int):
        super().__init__(f"{source} status {status_code}")
        self.source = source
        self.status_code = status_code


class DecodeFailure(FetchError):
    """レスポンスが想定した JSON 形式ではない"""


class EmptyResult(FetchError):
    """ランダム単語APIが空のリストを返した"""


class NoDefinition(FetchError):
    """辞書APIに定義が存在しない"""

    def __init__(self, word: str):
        super().__init__(f"no definition for {word}")
        self.word = word


class ConfigInvalid(WotdError):
    """スケジューラ設定（タイムゾーン・投稿時刻）が不正"""
