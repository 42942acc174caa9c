"""3ソース統合処理のテスト。"""

from __future__ import annotations

import pytest

from iidx_hub.actbl import extract_actbl
from iidx_hub.datatbl import extract_datatbl
from iidx_hub.reconcile import reconcile
from iidx_hub.titletbl import extract_titletbl


@pytest.fixture
def tables(actbl_js, titletbl_js, datatbl_js):
    chart_flags, _ = extract_actbl(actbl_js, arcade_only=True)
    titles, _ = extract_titletbl(titletbl_js)
    notes, _ = extract_datatbl(datatbl_js)
    return chart_flags, titles, notes


@pytest.mark.light
def test_reconcile_skips_songs_without_title(tables):
    """タイトル情報の無い曲は警告を記録して除外されることを確認する。"""
    result = reconcile(*tables)

    assert [song.key for song in result.merged] == ["song_a", "song_b"]
    assert result.warnings == ["Title info not found for no_title"]


@pytest.mark.light
def test_reconcile_builds_charts(tables):
    """レベルのある譜面のみ出力され、ノーツ数と BPM が付与されることを確認する。"""
    result = reconcile(*tables)
    song_a, song_b = result.merged

    assert [(c.play_style, c.difficulty) for c in song_a.charts] == [
        ("SP", "NORMAL"),
        ("SP", "HYPER"),
        ("SP", "ANOTHER"),
        ("DP", "NORMAL"),
        ("DP", "HYPER"),
        ("DP", "ANOTHER"),
    ]
    sp_another = song_a.charts[2]
    assert sp_another.level == 12
    assert sp_another.notes == 1100
    assert sp_another.bpm == "150"

    assert len(song_b.charts) == 9
    assert song_b.title == "Song -sub-"
    assert song_b.genre == "HARD&CORE"
    assert song_b.is_in_ac is True
    assert song_b.is_in_infinitas is False
    assert song_a.is_in_infinitas is True


@pytest.mark.light
def test_reconcile_zero_notes_become_none(actbl_js, titletbl_js):
    """ノーツ数 0 は不明 (None) として扱われることを確認する。"""
    chart_flags, _ = extract_actbl(actbl_js, arcade_only=True)
    titles, _ = extract_titletbl(titletbl_js)
    notes, _ = extract_datatbl("datatbl={'song_a':[0,0,0,700,0,0,0,0,0,0,0,\"150\"]};")

    song_a = reconcile(chart_flags, titles, notes).merged[0]
    by_slot = {(c.play_style, c.difficulty): c for c in song_a.charts}

    assert by_slot[("SP", "NORMAL")].notes is None
    assert by_slot[("SP", "NORMAL")].level == 3
    assert by_slot[("SP", "HYPER")].notes == 700


@pytest.mark.light
def test_reconcile_missing_notes_entry(actbl_js, titletbl_js):
    """datatbl に無い曲はノーツ数・BPM 未設定のまま出力されることを確認する。"""
    chart_flags, _ = extract_actbl(actbl_js, arcade_only=True)
    titles, _ = extract_titletbl(titletbl_js)

    result = reconcile(chart_flags, titles, {})

    assert len(result.merged) == 2
    for song in result.merged:
        assert all(c.notes is None and c.bpm is None for c in song.charts)


@pytest.mark.light
def test_reconcile_is_deterministic(tables):
    assert reconcile(*tables) == reconcile(*tables)
