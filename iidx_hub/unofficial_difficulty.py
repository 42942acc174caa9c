"""
SP☆12 非公式難易度表 (songs.json) を取り込み、SP譜面に非公式難易度を設定する。

songs.json は型の緩い JSON 配列で、各要素は概ね次の形をとる:
    {"name": "...", "difficulty": "A", "normal": "地力A", "hard": "個人差S+", "version": "...", ...}

曲の特定は正規化済み曲名の完全一致で行う。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from iidx_hub.chart_slots import DIFFICULTIES
from iidx_hub.config import Sp12Config
from iidx_hub.db import CHART_TABLE, SqliteRepository
from iidx_hub.errors import EntryMalformedError, PersistenceError, ScrapeError
from iidx_hub.normalize import normalize_title
from iidx_hub.scraper import fetch_json

logger = logging.getLogger(__name__)

SP12_SOURCE = "iidx-sp12"

_SHORT_FORMS = {
    "L": "LEGGENDARIA",
    "A": "ANOTHER",
    "H": "HYPER",
    "N": "NORMAL",
    "B": "BEGINNER",
}


@dataclass
class UnofficialDifficultyResult:
    """非公式難易度取り込みの集計結果。"""

    charts_updated: int = 0
    songs_not_found: int = 0
    charts_not_found: int = 0
    invalid_difficulties: int = 0
    errors: list[str] = field(default_factory=list)


def normalize_difficulty(difficulty_text: str) -> Optional[str]:
    """難易度表記 (L/A/H/N/B または正式名) を正規化する。解釈できなければ None。"""
    normalized = difficulty_text.upper().strip()
    if normalized in _SHORT_FORMS:
        return _SHORT_FORMS[normalized]
    if normalized in DIFFICULTIES:
        return normalized
    return None


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def update_chart_difficulty(
    repository: SqliteRepository,
    data: Any,
    result: UnofficialDifficultyResult,
) -> None:
    """
    songs.json の1要素を対応するSP譜面へ反映する。

    Raises:
        EntryMalformedError: 要素がオブジェクトでない、または曲名が無い場合。
        PersistenceError: DB更新に失敗した場合。
    """
    if not isinstance(data, dict):
        raise EntryMalformedError(f"entry is not an object: {data!r}")

    song_name = str(data.get("name") or "").strip()
    if not song_name:
        raise EntryMalformedError("name is empty")

    difficulty = normalize_difficulty(str(data.get("difficulty") or ""))
    if difficulty is None:
        logger.info("Invalid difficulty: %s for %s", data.get("difficulty"), song_name)
        result.invalid_difficulties += 1
        return

    song = repository.find_song_by_normalized_title(normalize_title(song_name))
    if song is None:
        logger.info("Song not found in DB: %s", song_name)
        result.songs_not_found += 1
        return

    updated = repository.update(
        CHART_TABLE,
        {"song_id": song["id"], "play_style": "SP", "difficulty": difficulty},
        {
            "unofficial_clear_level": _as_text(data.get("normal")),
            "unofficial_hard_level": _as_text(data.get("hard")),
        },
    )
    if updated is None:
        logger.info("Chart not found for: %s [%s]", song["title"], difficulty)
        result.charts_not_found += 1
        return

    result.charts_updated += 1


def integrate_unofficial_difficulty(
    repository: SqliteRepository,
    config: Optional[Sp12Config] = None,
    fetch: Callable[..., Any] = fetch_json,
) -> UnofficialDifficultyResult:
    """
    SP12非公式難易度表のデータを統合してDBに保存する。

    Raises:
        SourceUnavailableError: songs.json の取得に失敗した場合。
        ScrapeError: songs.json が空、または配列でない場合。
    """
    config = config or Sp12Config()
    entries = fetch(config.url, timeout=config.timeout, source="songs.json")
    if not isinstance(entries, list) or not entries:
        raise ScrapeError("No songs found in JSON")

    logger.info("Fetched %d difficulty entries from SP12", len(entries))

    result = UnofficialDifficultyResult()
    for data in entries:
        try:
            update_chart_difficulty(repository, data, result)
        except (EntryMalformedError, PersistenceError) as exc:
            name = data.get("name") if isinstance(data, dict) else data
            difficulty = data.get("difficulty") if isinstance(data, dict) else None
            message = f"Failed to process {name} [{difficulty}]: {exc}"
            logger.error(message)
            result.errors.append(message)

    repository.commit()
    logger.info(
        "Unofficial difficulty integration completed: updated=%d, not_found=%d, "
        "charts_not_found=%d, invalid=%d, errors=%d",
        result.charts_updated,
        result.songs_not_found,
        result.charts_not_found,
        result.invalid_difficulties,
        len(result.errors),
    )
    return result


def run_unofficial_difficulty_integration(
    repository: SqliteRepository,
    config: Optional[Sp12Config] = None,
    fetch: Callable[..., Any] = fetch_json,
) -> UnofficialDifficultyResult:
    """integrate_unofficial_difficulty を実行し、成否を scraper_run に記録する。"""
    try:
        result = integrate_unofficial_difficulty(repository, config, fetch)
    except Exception as exc:
        try:
            repository.record_run(SP12_SOURCE, False, error_message=str(exc))
        except PersistenceError:
            logger.exception("Failed to record failed scraper run")
        raise

    repository.record_run(
        SP12_SOURCE,
        True,
        {
            "songs_found": result.charts_updated + result.songs_not_found,
            "songs_updated": result.charts_updated,
        },
    )
    return result
