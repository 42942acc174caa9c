"""
譜面タイプ別の BPM 例外表。

datatbl の BPM は曲単位の1値だが、一部の曲は譜面ごとに BPM が異なる。
textage の get_bpm に相当する例外表で曲単位の BPM を上書きする。

譜面タイプ番号:
    0: SP BEGINNER, 1: SP NORMAL, 2: SP HYPER, 3: SP ANOTHER, 4: SP LEGGENDARIA
    5, 6: 未使用
    7: DP BEGINNER, 8: DP NORMAL, 9: DP HYPER, 10: DP ANOTHER, 11: DP LEGGENDARIA
"""

from __future__ import annotations

from iidx_hub.chart_slots import CHART_SLOTS

BPM_SPECIAL_CASES: dict[str, dict[int, str]] = {
    "gracyber": {4: "160～167", 9: "160～167"},
    "gracybr1": {4: "160～167", 9: "160～167"},
    "empathy": {3: "85～170", 4: "85～170"},
    "karma": {4: "222", 9: "222"},
    "littlepr": {0: "212", 1: "212", 2: "212", 7: "212"},
    "quell": {4: "162", 9: "162"},
    "_valse17": {
        0: "190～290",
        1: "190～290",
        2: "190～290",
        4: "230～320",
        7: "190～290",
        9: "220～350",
    },
    "titans": {5: "97～194", 10: "97～194"},
    "neu": {0: "95", 1: "95", 2: "95", 7: "95"},
    "ebnyivry": {5: "113～170", 10: "113～170"},
    "crew": {3: "152", 4: "155", 8: "170", 9: "176"},
    "futuredd": {4: "110～220", 9: "110～220"},
    "ovdoser": {6: "134", 7: "134", 8: "134", 9: "134", 10: "134"},
    "tablets": {4: "180～360"},
    "parasurv": {6: "290", 7: "290", 8: "290", 9: "290", 10: "290"},
    "inf_ffs": {4: "110～120"},
    "eraser": {4: "135～270", 9: "135～270"},
    "outlmtdd": {4: "175", 9: "175"},
    "_pkaijin": {0: "116～180", 1: "116～180", 2: "116～180", 7: "116～180"},
    "_aether": {5: "24～192", 10: "24～192"},
    "sei_teri": {5: "137～273", 10: "137～273"},
}

# 譜面タイプ番号が下限以上なら固定値を返す範囲指定ルール: key -> (下限, BPM)
BPM_RANGE_RULES: dict[str, tuple[int, str]] = {
    "ovdoser": (6, "134"),
    "parasurv": (6, "290"),
}


def resolve_bpm(song_key: str, chart_type: int, default_bpm: str) -> str:
    """
    譜面タイプに対応する BPM を返す。

    優先順位は 完全一致 > 範囲指定ルール > 曲単位の既定値。

    Args:
        song_key: textage の曲キー。
        chart_type: 譜面タイプ番号 (0-11)。
        default_bpm: datatbl の BPM 文字列。

    Returns:
        BPM 文字列。
    """
    exact = BPM_SPECIAL_CASES.get(song_key)
    if exact and chart_type in exact:
        return exact[chart_type]

    rule = BPM_RANGE_RULES.get(song_key)
    if rule and chart_type >= rule[0]:
        return rule[1]

    return default_bpm


def build_bpm_overrides(song_key: str, default_bpm: str) -> dict[int, str]:
    """
    既定値と異なる BPM になる譜面タイプだけを集めた辞書を返す。

    譜面スロットに対応しない番号 (5, 6, 7) は対象外。
    """
    overrides: dict[int, str] = {}
    for chart_type in (slot.chart_type for slot in CHART_SLOTS):
        bpm = resolve_bpm(song_key, chart_type, default_bpm)
        if bpm != default_bpm:
            overrides[chart_type] = bpm
    return overrides
