"""
譜面スロット（プレースタイル × 難易度）の対応表。

actbl のレベル位置、datatbl のノーツ数位置、BPM 例外表で使う譜面タイプ番号を
1か所の明示的な表で管理する。現行ACに存在しない DP BEGINNER は表に含めず、
要求された場合は UnsupportedCombinationError を送出する。
"""

from __future__ import annotations

from dataclasses import dataclass

from iidx_hub.errors import UnsupportedCombinationError

PLAY_STYLES = ("SP", "DP")
DIFFICULTIES = ("BEGINNER", "NORMAL", "HYPER", "ANOTHER", "LEGGENDARIA")


@dataclass(frozen=True)
class ChartSlot:
    """
    1譜面スロットの位置情報。

    Attributes:
        play_style: SP/DP。
        difficulty: BEGINNER/NORMAL/HYPER/ANOTHER/LEGGENDARIA。
        actbl_index: actbl 配列中のレベルトークン位置（次の位置がオプション）。
        datatbl_index: datatbl 配列中のノーツ数トークン位置。
        chart_type: BPM 例外表で使う譜面タイプ番号 (0-11)。
    """

    play_style: str
    difficulty: str
    actbl_index: int
    datatbl_index: int
    chart_type: int


CHART_SLOTS: tuple[ChartSlot, ...] = (
    ChartSlot("SP", "BEGINNER", 3, 1, 0),
    ChartSlot("SP", "NORMAL", 5, 2, 1),
    ChartSlot("SP", "HYPER", 7, 3, 2),
    ChartSlot("SP", "ANOTHER", 9, 4, 3),
    ChartSlot("SP", "LEGGENDARIA", 11, 5, 4),
    ChartSlot("DP", "NORMAL", 15, 7, 8),
    ChartSlot("DP", "HYPER", 17, 8, 9),
    ChartSlot("DP", "ANOTHER", 19, 9, 10),
    ChartSlot("DP", "LEGGENDARIA", 21, 10, 11),
)

# 旧CSの DP BEGINNER。actbl では解析のみ行い、どこにも出力しない。
ACTBL_DP_BEGINNER_INDEX = 13

_SLOT_BY_KEY = {(slot.play_style, slot.difficulty): slot for slot in CHART_SLOTS}


def get_chart_slot(play_style: str, difficulty: str) -> ChartSlot:
    """
    プレースタイルと難易度からスロット情報を返す。

    Raises:
        UnsupportedCombinationError: DP BEGINNER や未知の組み合わせの場合。
    """
    slot = _SLOT_BY_KEY.get((play_style, difficulty))
    if slot is None:
        if play_style == "DP" and difficulty == "BEGINNER":
            raise UnsupportedCombinationError(
                "DP BEGINNER does not exist in current AC version"
            )
        raise UnsupportedCombinationError(
            f"Unsupported chart combination: {play_style} {difficulty}"
        )
    return slot


def chart_type_index(play_style: str, difficulty: str) -> int:
    """(play_style, difficulty) を BPM 例外表の譜面タイプ番号へ変換する。"""
    return get_chart_slot(play_style, difficulty).chart_type
