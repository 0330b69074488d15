"""
共通データクラス定義
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Definition:
    """辞書APIから選んだ1件の定義（entry 0 / meaning 0 / definition 0）"""
    text: str
    part_of_speech: str = ""

    def format(self) -> str:
        """'(noun) — 定義文' 形式。品詞が空なら括弧ごと省く"""
        if not self.part_of_speech:
            return f"— {self.text}"
        return f"({self.part_of_speech}) — {self.text}"


@dataclass(frozen=True)
class ScheduleConfig:
    """日次投稿の設定。プロセス起動後は変更しない"""
    timezone: Optional[str] = None
    time_of_day: Optional[str] = None
    destination: Optional[str] = None

    @property
    def enabled(self) -> bool:
        """3項目すべて設定されている場合のみスケジューラを動かす"""
        return bool(self.timezone and self.time_of_day and self.destination)
