"""titletbl.js 抽出処理のテスト。"""

from __future__ import annotations

import pytest

from iidx_hub.errors import EntryMalformedError
from iidx_hub.titletbl import extract_titletbl, parse_titletbl_entry


@pytest.mark.light
def test_extract_titletbl_skips_dummy_and_comments(titletbl_js):
    """ダミーキー・コメント行・要素不足エントリが除外されることを確認する。"""
    songs, warnings = extract_titletbl(titletbl_js)

    assert list(songs) == ["song_a", "song_b", "home_only"]
    assert len(warnings) == 1
    assert warnings[0].startswith("Skipping titletbl short")


@pytest.mark.light
def test_extract_titletbl_decodes_fields(titletbl_js):
    """装飾・HTML・エスケープが除去された表示用文字列になることを確認する。"""
    songs, _ = extract_titletbl(titletbl_js)

    song_b = songs["song_b"]
    assert song_b.version == "33"
    assert song_b.textage_id == 1002
    assert song_b.option == 0
    assert song_b.genre == "HARD&CORE"
    assert song_b.artist == 'ARTIST "B"'
    assert song_b.title == "Song"
    assert song_b.subtitle == " -sub-"
    assert song_b.raw_title == '"Song".fontcolor("#ff0000").link("http://example.com/a,b")'


@pytest.mark.light
def test_extract_titletbl_version_and_option(titletbl_js):
    songs, _ = extract_titletbl(titletbl_js)

    song_a = songs["song_a"]
    assert song_a.version == "ss"
    assert song_a.option == 1
    assert song_a.subtitle is None

    home_only = songs["home_only"]
    assert home_only.version == "31"
    assert home_only.option == 0
    assert home_only.title == "Home Song"


@pytest.mark.light
def test_parse_titletbl_entry_rejects_non_numeric_id():
    tokens = ["1", '"abc"', "0", '"G"', '"A"', '"T"']
    with pytest.raises(EntryMalformedError):
        parse_titletbl_entry("x", tokens)


@pytest.mark.light
def test_parse_titletbl_entry_empty_subtitle_is_none():
    tokens = ["1", "5", "0", '"G"', '"A"', '"T"', '""']
    record = parse_titletbl_entry("x", tokens)
    assert record.subtitle is None
    assert record.title == "T"


@pytest.mark.light
def test_extract_titletbl_trailing_comment_in_entry():
    """エントリ内の行コメントがタイトルや後続エントリを壊さないことを確認する。"""
    js = (
        "titletbl={\n"
        "'a':[1,2,0,\"G\",\"A\",\"T\" // it's a note\n"
        "],\n"
        "'b':[1,3,0,\"G2\",\"A2\",\"T2\"]\n"
        "};"
    )
    songs, warnings = extract_titletbl(js)

    assert warnings == []
    assert songs["a"].title == "T"
    assert songs["a"].raw_title == '"T"'
    assert songs["b"].title == "T2"
