"""
datatbl.js（ノーツ数・BPMテーブル）の抽出処理。

エントリ形式:
    'tag': [?, SPB, SPN, SPH, SPA, SPL, (旧CS DPB), DPN, DPH, DPA, DPL, "BPM", ...]
"""

from __future__ import annotations

import logging

from iidx_hub.bpm import build_bpm_overrides
from iidx_hub.chart_slots import CHART_SLOTS
from iidx_hub.decoder import decode_token, parse_int
from iidx_hub.errors import EntryMalformedError
from iidx_hub.js_literal import (
    iter_table_entries,
    locate_object_body,
    split_literal_tokens,
    strip_comment_lines,
)
from iidx_hub.models import NotesEntry

logger = logging.getLogger(__name__)

VARNAME = "datatbl"
MIN_TOKENS = 12
BPM_INDEX = 11


def parse_datatbl_entry(key: str, tokens: list[str]) -> NotesEntry:
    """
    1エントリ分のトークン列を NotesEntry へ変換する。

    6番目（旧CSの DP BEGINNER）は読み捨てる。

    Raises:
        EntryMalformedError: 要素数不足、またはノーツ数が整数でない場合。
    """
    if len(tokens) < MIN_TOKENS:
        raise EntryMalformedError(f"insufficient data ({len(tokens)} elements)")

    notes = {
        (slot.play_style, slot.difficulty): parse_int(
            tokens[slot.datatbl_index], f"{slot.play_style} {slot.difficulty} notes"
        )
        for slot in CHART_SLOTS
    }
    default_bpm = decode_token(tokens[BPM_INDEX])

    return NotesEntry(
        key=key,
        notes=notes,
        bpm=default_bpm,
        bpm_overrides=build_bpm_overrides(key, default_bpm),
    )


def extract_datatbl(js_text: str) -> tuple[dict[str, NotesEntry], list[str]]:
    """
    datatbl.js のテキストから曲ごとのノーツ数と BPM を抽出する。

    Returns:
        (tag -> NotesEntry の辞書（出現順）, 警告メッセージのリスト)。

    Raises:
        TableNotFoundError: datatbl オブジェクトが見つからない場合。
    """
    body = strip_comment_lines(locate_object_body(js_text, VARNAME))

    entries: dict[str, NotesEntry] = {}
    warnings: list[str] = []
    entry_count = 0
    for key, array_body in iter_table_entries(body):
        entry_count += 1
        try:
            entry = parse_datatbl_entry(key, split_literal_tokens(array_body))
        except EntryMalformedError as exc:
            message = f"Skipping datatbl {key}: {exc}"
            logger.warning(message)
            warnings.append(message)
            continue

        if key in entries:
            message = f"Duplicate datatbl key {key}: later entry wins"
            logger.warning(message)
            warnings.append(message)
        entries[key] = entry

    logger.info("datatbl: %d entries found, %d parsed", entry_count, len(entries))
    return entries, warnings
