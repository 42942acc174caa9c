"""
titletbl.js（曲名・メタ情報テーブル）の抽出処理。

エントリ形式:
    'tag': [version, id, option, genre, artist, title, subtitle?]

title/subtitle は `"TITLE".fontcolor("#f00")` のような装飾呼び出しを含むことがあり、
角括弧・丸括弧の入れ子を考慮したトークン分割が必要になる。
"""

from __future__ import annotations

import logging

from iidx_hub.decoder import decode_token, parse_int, strip_decoration
from iidx_hub.errors import EntryMalformedError
from iidx_hub.js_literal import (
    iter_table_entries,
    locate_object_body,
    split_literal_tokens,
    strip_comment_lines,
)
from iidx_hub.models import TitleRecord

logger = logging.getLogger(__name__)

VARNAME = "titletbl"
MIN_TOKENS = 6
DUMMY_KEY = "__dmy__"

VERINDEX = 0
IDINDEX = 1
OPTINDEX = 2
GENREINDEX = 3
ARTISTINDEX = 4
TITLEINDEX = 5
SUBTITLEINDEX = 6


def _is_skipped(key: str, array_body: str) -> bool:
    """ダミーキーとコメントアウトされたエントリを判定する。"""
    return key == DUMMY_KEY or key.startswith("//") or array_body.strip().startswith("//")


def parse_titletbl_entry(key: str, tokens: list[str]) -> TitleRecord:
    """
    1エントリ分のトークン列を TitleRecord へ変換する。

    option は空の場合 0 とする。

    Raises:
        EntryMalformedError: 要素数不足、または id/option が整数でない場合。
    """
    if len(tokens) < MIN_TOKENS:
        raise EntryMalformedError(f"insufficient data ({len(tokens)} values)")

    option_token = tokens[OPTINDEX]
    option = parse_int(option_token, "option") if decode_token(option_token) else 0

    subtitle = None
    if len(tokens) > SUBTITLEINDEX:
        subtitle = strip_decoration(tokens[SUBTITLEINDEX]) or None

    return TitleRecord(
        key=key,
        version=decode_token(tokens[VERINDEX]).lower(),
        textage_id=parse_int(tokens[IDINDEX], "id"),
        option=option,
        genre=decode_token(tokens[GENREINDEX]),
        artist=decode_token(tokens[ARTISTINDEX]),
        raw_title=tokens[TITLEINDEX],
        title=strip_decoration(tokens[TITLEINDEX]),
        subtitle=subtitle,
    )


def extract_titletbl(js_text: str) -> tuple[dict[str, TitleRecord], list[str]]:
    """
    titletbl.js のテキストから曲ごとのタイトル情報を抽出する。

    Returns:
        (tag -> TitleRecord の辞書（出現順）, 警告メッセージのリスト)。

    Raises:
        TableNotFoundError: titletbl オブジェクトが見つからない場合。
    """
    body = strip_comment_lines(locate_object_body(js_text, VARNAME))

    songs: dict[str, TitleRecord] = {}
    warnings: list[str] = []
    entry_count = 0
    for key, array_body in iter_table_entries(body):
        entry_count += 1
        if _is_skipped(key, array_body):
            continue

        try:
            record = parse_titletbl_entry(key, split_literal_tokens(array_body))
        except EntryMalformedError as exc:
            message = f"Skipping titletbl {key}: {exc}"
            logger.warning(message)
            warnings.append(message)
            continue

        if key in songs:
            message = f"Duplicate titletbl key {key}: later entry wins"
            logger.warning(message)
            warnings.append(message)
        songs[key] = record

    logger.info("titletbl: %d entries found, %d valid songs", entry_count, len(songs))
    return songs, warnings
