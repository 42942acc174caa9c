"""
SQLiteへの曲・譜面データ保存処理を提供するモジュール。

統合処理から注入されるリポジトリとして SqliteRepository を提供する。

処理方針:
- song は textage_slug、chart は (song_id, play_style, difficulty) を一意キーとしてupsertする
- 既存行と内容が同一の場合は更新しない（updated_at も変えない）
- 統合処理の実行結果は scraper_run に1行ずつ記録する
"""

from __future__ import annotations

import contextlib
import sqlite3
from datetime import datetime, timezone
from typing import Any, Iterator, Optional

from iidx_hub.errors import PersistenceError

SONG_TABLE = "song"
CHART_TABLE = "chart"

UNIQUE_KEYS: dict[str, tuple[str, ...]] = {
    SONG_TABLE: ("textage_slug",),
    CHART_TABLE: ("song_id", "play_style", "difficulty"),
}

_COLUMNS: dict[str, frozenset[str]] = {
    SONG_TABLE: frozenset(
        {
            "textage_slug",
            "textage_num_index",
            "title",
            "normalized_title",
            "genre",
            "artist",
            "version_id",
            "is_in_ac",
            "is_in_infinitas",
        }
    ),
    CHART_TABLE: frozenset(
        {
            "song_id",
            "play_style",
            "difficulty",
            "level",
            "notes",
            "bpm",
            "unofficial_clear_level",
            "unofficial_hard_level",
        }
    ),
}


def now_iso() -> str:
    """
    現在時刻(UTC)をISO 8601形式で返す。

    Returns:
        UTC時刻のISO文字列。
    """
    return datetime.now(timezone.utc).isoformat()


def connect_db(path: str) -> sqlite3.Connection:
    """
    SQLite DBへ接続する。

    Args:
        path: SQLiteファイルパス（":memory:" も可）。

    Returns:
        sqlite3.Connectionオブジェクト。
    """
    con = sqlite3.connect(path)
    con.row_factory = sqlite3.Row
    con.execute("PRAGMA foreign_keys = ON")
    return con


def init_schema(con: sqlite3.Connection) -> None:
    """
    DBスキーマを初期化する。

    song/chart/scraper_runテーブルが存在しない場合に作成する。

    Args:
        con: SQLite接続。
    """
    cur = con.cursor()

    cur.execute("""
    CREATE TABLE IF NOT EXISTS song (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        textage_slug TEXT NOT NULL UNIQUE,
        textage_num_index INTEGER NOT NULL,
        title TEXT NOT NULL,
        normalized_title TEXT NOT NULL,
        genre TEXT NOT NULL,
        artist TEXT NOT NULL,
        version_id TEXT NOT NULL,
        is_in_ac INTEGER NOT NULL,
        is_in_infinitas INTEGER NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """)

    cur.execute("""
    CREATE INDEX IF NOT EXISTS idx_song_normalized_title
    ON song(normalized_title)
    """)

    cur.execute("""
    CREATE TABLE IF NOT EXISTS chart (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        song_id INTEGER NOT NULL,
        play_style TEXT NOT NULL,
        difficulty TEXT NOT NULL,
        level INTEGER NOT NULL,
        notes INTEGER NULL,
        bpm TEXT NULL,
        unofficial_clear_level TEXT NULL,
        unofficial_hard_level TEXT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        UNIQUE(song_id, play_style, difficulty),
        FOREIGN KEY(song_id) REFERENCES song(id)
    )
    """)

    cur.execute("""
    CREATE TABLE IF NOT EXISTS scraper_run (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        source TEXT NOT NULL,
        success INTEGER NOT NULL,
        completed_at TEXT NOT NULL,
        songs_found INTEGER NULL,
        songs_added INTEGER NULL,
        songs_updated INTEGER NULL,
        error_message TEXT NULL
    )
    """)

    con.commit()


@contextlib.contextmanager
def _wrap_errors(action: str) -> Iterator[None]:
    try:
        yield
    except sqlite3.Error as e:
        raise PersistenceError(f"{action} failed: {e}") from e


def _check_columns(table: str, names) -> None:
    allowed = _COLUMNS.get(table)
    if allowed is None:
        raise ValueError(f"Unknown table: {table}")
    unknown = set(names) - allowed
    if unknown:
        raise ValueError(f"Unknown columns for {table}: {sorted(unknown)}")


class SqliteRepository:
    """
    song/chart を一意キーで読み書きするリポジトリ。

    統合処理はこのクラスをコンストラクタ引数として受け取り、
    プロセス全体で共有するハンドルは持たない。
    """

    def __init__(self, con: sqlite3.Connection):
        self.con = con

    @classmethod
    def open(cls, path: str) -> "SqliteRepository":
        """接続を開きスキーマを初期化したリポジトリを返す。"""
        con = connect_db(path)
        init_schema(con)
        return cls(con)

    def find_by_unique_key(self, table: str, key: dict[str, Any]) -> Optional[dict[str, Any]]:
        """
        一意キーで1行を検索する。

        Args:
            table: "song" または "chart"。
            key: 一意キー列名 -> 値。

        Returns:
            行の辞書。存在しなければ None。
        """
        columns = UNIQUE_KEYS.get(table)
        if columns is None or set(key) != set(columns):
            raise ValueError(f"Invalid unique key for {table}: {sorted(key)}")

        where = " AND ".join(f"{col}=?" for col in columns)
        with _wrap_errors(f"select {table}"):
            row = self.con.execute(
                f"SELECT * FROM {table} WHERE {where}",
                tuple(key[col] for col in columns),
            ).fetchone()
        return dict(row) if row is not None else None

    def upsert(self, table: str, key: dict[str, Any], data: dict[str, Any]) -> dict[str, Any]:
        """
        一意キーを前提として存在判定し、INSERTまたはUPDATEを行う。

        既存行の値が data と同一であれば何も書き込まない。

        Args:
            table: "song" または "chart"。
            key: 一意キー列名 -> 値。
            data: 書き込む列名 -> 値（一意キー列を含めてもよい）。

        Returns:
            upsert 後の行の辞書。
        """
        values = {**data, **key}
        _check_columns(table, values)

        existing = self.find_by_unique_key(table, key)
        now = now_iso()

        if existing is None:
            columns = list(values) + ["created_at", "updated_at"]
            params = list(values.values()) + [now, now]
            placeholders = ", ".join("?" for _ in columns)
            with _wrap_errors(f"insert {table}"):
                self.con.execute(
                    f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})",
                    params,
                )
            return self.find_by_unique_key(table, key)

        changed = {col: val for col, val in data.items() if existing.get(col) != val}
        if not changed:
            return existing

        assignments = ", ".join(f"{col}=?" for col in changed)
        with _wrap_errors(f"update {table}"):
            self.con.execute(
                f"UPDATE {table} SET {assignments}, updated_at=? WHERE id=?",
                list(changed.values()) + [now, existing["id"]],
            )
        return self.find_by_unique_key(table, key)

    def update(self, table: str, key: dict[str, Any], data: dict[str, Any]) -> Optional[dict[str, Any]]:
        """既存行のみを更新する。行が存在しない場合は None を返す。"""
        if self.find_by_unique_key(table, key) is None:
            return None
        return self.upsert(table, key, data)

    def find_song_by_normalized_title(self, normalized_title: str) -> Optional[dict[str, Any]]:
        """正規化済み曲名が一致する最初の曲を返す。"""
        with _wrap_errors("select song by title"):
            row = self.con.execute(
                "SELECT * FROM song WHERE normalized_title=? ORDER BY id LIMIT 1",
                (normalized_title,),
            ).fetchone()
        return dict(row) if row is not None else None

    def record_run(
        self,
        source: str,
        success: bool,
        counts: Optional[dict[str, int]] = None,
        error_message: Optional[str] = None,
    ) -> None:
        """
        統合処理の実行結果を scraper_run に1行記録する。

        Args:
            source: ソース名（例: "textage.cc"）。
            success: 成功したかどうか。
            counts: songs_found / songs_added / songs_updated。
            error_message: 失敗時のエラーメッセージ。
        """
        counts = counts or {}
        with _wrap_errors("insert scraper_run"):
            self.con.execute(
                """
                INSERT INTO scraper_run (
                    source, success, completed_at,
                    songs_found, songs_added, songs_updated, error_message
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    source,
                    1 if success else 0,
                    now_iso(),
                    counts.get("songs_found"),
                    counts.get("songs_added"),
                    counts.get("songs_updated"),
                    error_message,
                ),
            )
            self.con.commit()

    def commit(self) -> None:
        with _wrap_errors("commit"):
            self.con.commit()

    def close(self) -> None:
        self.con.close()
