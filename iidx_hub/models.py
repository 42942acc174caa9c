"""
データモデル定義モジュール。

textage の各テーブルから抽出した中間レコードと、
3ソースを統合した MergedSong（1曲分の情報）を定義する。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from iidx_hub.chart_slots import get_chart_slot


@dataclass(frozen=True)
class ChartFlagRecord:
    """
    actbl の1譜面スロット分の情報。

    level が None の場合、そのスロットに譜面は存在しない。
    """

    level: Optional[int]
    has_chart_data: bool
    uses_extended_level_scale: bool
    included_in_arcade: bool
    has_charge_or_backspin_scratch_notes: bool

    @classmethod
    def from_option(cls, level: Optional[int], option: int) -> "ChartFlagRecord":
        """レベル値とオプションビットマスク (bit0-bit3) から生成する。"""
        return cls(
            level=level,
            has_chart_data=bool(option & 1),
            uses_extended_level_scale=bool(option & 2),
            included_in_arcade=bool(option & 4),
            has_charge_or_backspin_scratch_notes=bool(option & 8),
        )


@dataclass(frozen=True)
class SongInclusionRecord:
    """actbl 先頭トークンの収録フラグ。"""

    included_in_arcade: bool
    included_in_home_version: bool
    has_beginner_chart: bool
    has_leggendaria_chart: bool

    @classmethod
    def from_mask(cls, mask: int) -> "SongInclusionRecord":
        return cls(
            included_in_arcade=bool(mask & 1),
            included_in_home_version=bool(mask & 2),
            has_beginner_chart=bool(mask & 4),
            has_leggendaria_chart=bool(mask & 8),
        )


@dataclass(frozen=True)
class SongChartBundle:
    """
    actbl の1曲分。

    charts は (play_style, difficulty) をキーとする9スロット分の ChartFlagRecord。
    DP BEGINNER は保持しない。
    """

    key: str
    inclusion: SongInclusionRecord
    charts: dict[tuple[str, str], ChartFlagRecord]
    extra_tag: Optional[int] = None

    def chart(self, play_style: str, difficulty: str) -> ChartFlagRecord:
        """
        指定スロットの ChartFlagRecord を返す。

        Raises:
            UnsupportedCombinationError: DP BEGINNER を要求した場合。
        """
        slot = get_chart_slot(play_style, difficulty)
        return self.charts[(slot.play_style, slot.difficulty)]


@dataclass(frozen=True)
class NotesEntry:
    """datatbl の1曲分（ノーツ数と BPM）。"""

    key: str
    notes: dict[tuple[str, str], int]
    bpm: str
    bpm_overrides: dict[int, str] = field(default_factory=dict)

    def notes_for(self, play_style: str, difficulty: str) -> int:
        slot = get_chart_slot(play_style, difficulty)
        return self.notes[(slot.play_style, slot.difficulty)]

    def bpm_for(self, play_style: str, difficulty: str) -> str:
        slot = get_chart_slot(play_style, difficulty)
        return self.bpm_overrides.get(slot.chart_type, self.bpm)


@dataclass(frozen=True)
class TitleRecord:
    """
    titletbl の1曲分。

    raw_title は装飾 (.fontcolor/.link) を含むトークンそのもの、
    title/subtitle は装飾とHTMLを除去した表示用文字列。
    """

    key: str
    version: str
    textage_id: int
    option: int
    genre: str
    artist: str
    raw_title: str
    title: str
    subtitle: Optional[str] = None


@dataclass(frozen=True)
class ChartEntry:
    """統合後の1譜面。notes/bpm は不明な場合 None。"""

    play_style: str
    difficulty: str
    level: int
    notes: Optional[int]
    bpm: Optional[str]


@dataclass(frozen=True)
class MergedSong:
    """3ソースを統合した1曲分の情報。"""

    key: str
    textage_id: int
    title: str
    raw_title: str
    genre: str
    artist: str
    version: str
    is_in_ac: bool
    is_in_infinitas: bool
    charts: tuple[ChartEntry, ...]


@dataclass(frozen=True)
class ReconcileResult:
    merged: list[MergedSong]
    warnings: list[str]


@dataclass
class IntegrationResult:
    """textage 統合処理の集計結果。"""

    songs_added: int = 0
    songs_updated: int = 0
    charts_added: int = 0
    charts_updated: int = 0
    warnings: list[str] = field(default_factory=list)

    @property
    def songs_found(self) -> int:
        return self.songs_added + self.songs_updated
