"""
actbl.js（譜面フラグテーブル）の抽出処理。

エントリ形式:
    'tag': [収録フラグ, ?, ?, SPB lv, SPB opt, SPN lv, SPN opt, ... , DPL lv, DPL opt, ?, ?, 追加情報]

- 0番目: 収録フラグ (bit0: AC, bit1: INFINITAS, bit2: BEGINNERあり, bit3: LEGGENDARIAあり)
- 3-22番目: (レベル, オプション) の10組。13/14番目の DP BEGINNER は解析のみ。
- 25番目: 数値であれば追加情報
"""

from __future__ import annotations

import logging
import re
from typing import Optional, Union

from iidx_hub.chart_slots import ACTBL_DP_BEGINNER_INDEX, CHART_SLOTS
from iidx_hub.decoder import parse_int, unquote
from iidx_hub.errors import EntryMalformedError
from iidx_hub.js_literal import (
    iter_table_entries,
    locate_object_body,
    split_literal_tokens,
    strip_comment_lines,
)
from iidx_hub.models import ChartFlagRecord, SongChartBundle, SongInclusionRecord

logger = logging.getLogger(__name__)

VARNAME = "actbl"
MIN_TOKENS = 22
EXTRA_TAG_INDEX = 25

_DECIMAL_RE = re.compile(r"[+-]?\d+")
_BASE36_RE = re.compile(r"[0-9A-Za-z]+")


def parse_level(value: Union[str, int]) -> Optional[int]:
    """
    レベルトークンを数値へ変換する。

    `0` / `'0'` は譜面なし (None)。10進数はそのまま、英字を含む場合は
    36進数として解釈する（A=10, B=11, C=12 ...）。

    Raises:
        EntryMalformedError: レベルとして解釈できない場合。
    """
    if isinstance(value, int):
        return value if value > 0 else None

    text = unquote(str(value).strip())
    if text in ("", "0"):
        return None
    if _DECIMAL_RE.fullmatch(text):
        level = int(text)
    elif _BASE36_RE.fullmatch(text):
        level = int(text, 36)
    else:
        raise EntryMalformedError(f"invalid level: {value!r}")
    return level if level > 0 else None


def _parse_chart(tokens: list[str], index: int) -> ChartFlagRecord:
    level = parse_level(tokens[index])
    # 末尾のオプションが省略されている場合は 0 とみなす
    option = parse_int(tokens[index + 1], "chart option") if index + 1 < len(tokens) else 0
    return ChartFlagRecord.from_option(level, option)


def parse_actbl_entry(key: str, tokens: list[str]) -> SongChartBundle:
    """
    1エントリ分のトークン列を SongChartBundle へ変換する。

    Raises:
        EntryMalformedError: 要素数不足、または数値変換に失敗した場合。
    """
    if len(tokens) < MIN_TOKENS:
        raise EntryMalformedError(f"insufficient data ({len(tokens)} elements)")

    inclusion = SongInclusionRecord.from_mask(parse_int(tokens[0], "inclusion flag"))
    charts = {
        (slot.play_style, slot.difficulty): _parse_chart(tokens, slot.actbl_index)
        for slot in CHART_SLOTS
    }
    _parse_chart(tokens, ACTBL_DP_BEGINNER_INDEX)

    extra_tag = None
    if len(tokens) > EXTRA_TAG_INDEX and _DECIMAL_RE.fullmatch(tokens[EXTRA_TAG_INDEX]):
        extra_tag = int(tokens[EXTRA_TAG_INDEX])

    return SongChartBundle(key=key, inclusion=inclusion, charts=charts, extra_tag=extra_tag)


def extract_actbl(
    js_text: str,
    arcade_only: bool = False,
) -> tuple[dict[str, SongChartBundle], list[str]]:
    """
    actbl.js のテキストから曲ごとの譜面フラグを抽出する。

    Args:
        js_text: Shift-JIS からデコード済みの actbl.js。
        arcade_only: True の場合、AC 収録フラグの無い曲を除外する。

    Returns:
        (tag -> SongChartBundle の辞書（出現順）, 警告メッセージのリスト)。

    Raises:
        TableNotFoundError: actbl オブジェクトが見つからない場合。
    """
    body = strip_comment_lines(locate_object_body(js_text, VARNAME))

    songs: dict[str, SongChartBundle] = {}
    warnings: list[str] = []
    seen: set[str] = set()
    entry_count = 0
    for key, array_body in iter_table_entries(body):
        entry_count += 1
        try:
            bundle = parse_actbl_entry(key, split_literal_tokens(array_body))
        except EntryMalformedError as exc:
            message = f"Skipping actbl {key}: {exc}"
            logger.warning(message)
            warnings.append(message)
            continue

        if key in seen:
            message = f"Duplicate actbl key {key}: later entry wins"
            logger.warning(message)
            warnings.append(message)
        seen.add(key)

        if arcade_only and not bundle.inclusion.included_in_arcade:
            # 後勝ちなので、前のエントリも除外する
            songs.pop(key, None)
            continue
        songs[key] = bundle

    logger.info(
        "actbl: %d entries found, %d songs parsed%s",
        entry_count,
        len(songs),
        " (AC only)" if arcade_only else "",
    )
    return songs, warnings
