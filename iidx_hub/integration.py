"""
textage のデータを統合して SQLite に保存する。

1. 3テーブルを並行取得（textage_loader）
2. 各テーブルを抽出（actbl / titletbl / datatbl）
3. 曲キーで統合（reconcile）
4. song/chart を upsert し、件数と警告を集計する

取得失敗・テーブル未検出は致命的エラーとして送出し、
それ以外の不正データは警告として IntegrationResult に集約する。
"""

from __future__ import annotations

import logging
from typing import Optional

from iidx_hub.actbl import extract_actbl
from iidx_hub.config import TextageConfig
from iidx_hub.datatbl import extract_datatbl
from iidx_hub.db import CHART_TABLE, SONG_TABLE, SqliteRepository
from iidx_hub.errors import PersistenceError
from iidx_hub.models import IntegrationResult, MergedSong
from iidx_hub.normalize import normalize_title
from iidx_hub.reconcile import reconcile
from iidx_hub.scraper import fetch_bytes
from iidx_hub.textage_loader import Fetcher, fetch_textage_tables
from iidx_hub.titletbl import extract_titletbl

logger = logging.getLogger(__name__)

TEXTAGE_SOURCE = "textage.cc"


def _song_data(song: MergedSong) -> dict:
    return {
        "textage_num_index": song.textage_id,
        "title": song.title,
        "normalized_title": normalize_title(song.title),
        "genre": song.genre,
        "artist": song.artist,
        "version_id": song.version,
        "is_in_ac": song.is_in_ac,
        "is_in_infinitas": song.is_in_infinitas,
    }


def apply_song(repository: SqliteRepository, song: MergedSong, result: IntegrationResult) -> None:
    """
    MergedSong を song/chart へ反映し、追加・更新件数を result に加算する。

    譜面単位の失敗は警告に記録して残りの譜面の処理を続ける。

    Raises:
        PersistenceError: song の upsert に失敗した場合。
    """
    key = {"textage_slug": song.key}
    existing = repository.find_by_unique_key(SONG_TABLE, key)
    entity = repository.upsert(SONG_TABLE, key, _song_data(song))
    if existing is None:
        result.songs_added += 1
    else:
        result.songs_updated += 1

    for chart in song.charts:
        chart_key = {
            "song_id": entity["id"],
            "play_style": chart.play_style,
            "difficulty": chart.difficulty,
        }
        try:
            existing_chart = repository.find_by_unique_key(CHART_TABLE, chart_key)
            repository.upsert(
                CHART_TABLE,
                chart_key,
                {"level": chart.level, "notes": chart.notes, "bpm": chart.bpm},
            )
        except PersistenceError as exc:
            message = (
                f"Failed to upsert chart for {song.key} "
                f"{chart.play_style} {chart.difficulty}: {exc}"
            )
            logger.error(message)
            result.warnings.append(message)
            continue

        if existing_chart is None:
            result.charts_added += 1
        else:
            result.charts_updated += 1


def integrate_textage_data(
    repository: SqliteRepository,
    config: Optional[TextageConfig] = None,
    fetch: Fetcher = fetch_bytes,
) -> IntegrationResult:
    """
    textage.cc のデータを統合してDBに保存する。

    Args:
        repository: 永続化先。
        config: 取得設定。
        fetch: テーブル取得関数（テストでは差し替える）。

    Returns:
        IntegrationResult（追加・更新件数と警告）。

    Raises:
        SourceUnavailableError: いずれかのテーブル取得に失敗した場合。
        TableNotFoundError: いずれかのテーブルが見つからない場合。
    """
    config = config or TextageConfig()
    title_text, data_text, act_text = fetch_textage_tables(config, fetch)

    chart_flags, act_warnings = extract_actbl(act_text, arcade_only=config.arcade_only)
    titles, title_warnings = extract_titletbl(title_text)
    notes, data_warnings = extract_datatbl(data_text)
    logger.info(
        "Parsed %d songs from actbl.js, %d from titletbl.js, %d from datatbl.js",
        len(chart_flags),
        len(titles),
        len(notes),
    )

    reconciled = reconcile(chart_flags, titles, notes)
    result = IntegrationResult(
        warnings=[*act_warnings, *title_warnings, *data_warnings, *reconciled.warnings]
    )

    for song in reconciled.merged:
        try:
            apply_song(repository, song, result)
        except PersistenceError as exc:
            message = f"Failed to process {song.key}: {exc}"
            logger.error(message)
            result.warnings.append(message)

    repository.commit()
    logger.info(
        "Integration completed: songs +%d/~%d, charts +%d/~%d, %d warnings",
        result.songs_added,
        result.songs_updated,
        result.charts_added,
        result.charts_updated,
        len(result.warnings),
    )
    return result


def record_scraper_run(
    repository: SqliteRepository,
    source: str,
    success: bool,
    result: Optional[IntegrationResult] = None,
    error_message: Optional[str] = None,
) -> None:
    """スクレイピング実行結果を記録する。"""
    counts = None
    if result is not None:
        counts = {
            "songs_found": result.songs_found,
            "songs_added": result.songs_added,
            "songs_updated": result.songs_updated,
        }
    repository.record_run(source, success, counts, error_message)


def run_textage_integration(
    repository: SqliteRepository,
    config: Optional[TextageConfig] = None,
    fetch: Fetcher = fetch_bytes,
) -> IntegrationResult:
    """
    integrate_textage_data を実行し、成否を scraper_run に記録する。

    失敗時は success=False で記録したうえで例外を再送出する。
    """
    try:
        result = integrate_textage_data(repository, config, fetch)
    except Exception as exc:
        try:
            record_scraper_run(repository, TEXTAGE_SOURCE, False, error_message=str(exc))
        except PersistenceError:
            logger.exception("Failed to record failed scraper run")
        raise

    record_scraper_run(repository, TEXTAGE_SOURCE, True, result)
    return result
