"""
actbl / titletbl / datatbl の3ソースを曲キーで突き合わせる統合処理。

曲の母集団は actbl。titletbl に対応が無い曲は警告を記録してスキップし、
datatbl に対応が無い曲はノーツ数・BPM を未設定のまま出力する。
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional

from iidx_hub.chart_slots import CHART_SLOTS
from iidx_hub.models import (
    ChartEntry,
    MergedSong,
    NotesEntry,
    ReconcileResult,
    SongChartBundle,
    TitleRecord,
)

logger = logging.getLogger(__name__)


def _build_charts(
    bundle: SongChartBundle,
    notes_entry: Optional[NotesEntry],
) -> tuple[ChartEntry, ...]:
    charts: list[ChartEntry] = []
    for slot in CHART_SLOTS:
        flags = bundle.chart(slot.play_style, slot.difficulty)
        if flags.level is None:
            continue

        notes: Optional[int] = None
        bpm: Optional[str] = None
        if notes_entry is not None:
            # ノーツ数 0 は不明扱い
            notes = notes_entry.notes_for(slot.play_style, slot.difficulty) or None
            bpm = notes_entry.bpm_for(slot.play_style, slot.difficulty)

        charts.append(
            ChartEntry(
                play_style=slot.play_style,
                difficulty=slot.difficulty,
                level=flags.level,
                notes=notes,
                bpm=bpm,
            )
        )
    return tuple(charts)


def reconcile(
    chart_flags: Mapping[str, SongChartBundle],
    titles: Mapping[str, TitleRecord],
    notes: Mapping[str, NotesEntry],
) -> ReconcileResult:
    """
    3ソースを統合して MergedSong のリストを返す。

    Args:
        chart_flags: extract_actbl の結果。出力順はこの辞書の順序に従う。
        titles: extract_titletbl の結果。
        notes: extract_datatbl の結果。

    Returns:
        ReconcileResult。タイトル未検出の曲は warnings に記録される。
    """
    merged: list[MergedSong] = []
    warnings: list[str] = []

    for key, bundle in chart_flags.items():
        title = titles.get(key)
        if title is None:
            message = f"Title info not found for {key}"
            logger.warning(message)
            warnings.append(message)
            continue

        merged.append(
            MergedSong(
                key=key,
                textage_id=title.textage_id,
                title=f"{title.title}{title.subtitle or ''}",
                raw_title=title.raw_title,
                genre=title.genre,
                artist=title.artist,
                version=title.version,
                is_in_ac=bundle.inclusion.included_in_arcade,
                is_in_infinitas=bundle.inclusion.included_in_home_version,
                charts=_build_charts(bundle, notes.get(key)),
            )
        )

    logger.info("reconcile: %d songs merged, %d warnings", len(merged), len(warnings))
    return ReconcileResult(merged=merged, warnings=warnings)
