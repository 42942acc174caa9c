import logging
import os
import traceback
from datetime import datetime, timezone

from iidx_hub.config import Settings, load_settings
from iidx_hub.db import SqliteRepository
from iidx_hub.discord_notify import send_discord_message
from iidx_hub.integration import run_textage_integration
from iidx_hub.unofficial_difficulty import run_unofficial_difficulty_integration

logger = logging.getLogger("iidx_hub")


def now_iso() -> str:
    """
    現在のUTC時刻をISO 8601形式の文字列で取得する。

    Returns:
        str: ISO 8601形式でフォーマットされた現在のUTC時刻文字列。
    """
    return datetime.now(timezone.utc).isoformat()


def _load_settings() -> Settings:
    path = os.environ.get("SETTINGS_PATH", "settings.yaml")
    if not os.path.exists(path):
        logger.info("%s not found, using default settings", path)
        return Settings()
    return load_settings(path)


def main():
    """
    textage / SP12 のデータを取り込み、SQLite の曲データベースを更新する。
    以下の処理を順序実行する:
    1. textage の3テーブルを取得・統合して song/chart を upsert
    2. SP12 非公式難易度表で SP 譜面の非公式難易度を更新
    3. Discord Webhookで処理結果を通知（成功/失敗）
    環境変数:
    - SETTINGS_PATH: 設定ファイルパス(デフォルト: "settings.yaml")
    - SQLITE_PATH: SQLiteファイルパス(未指定時は settings の output_db_path)
    - DISCORD_WEBHOOK_URL: Discord通知先(オプション)
    各実行結果は scraper_run テーブルに記録される。
    Raises:
        Exception: 取得失敗など致命的なエラーが発生した場合。
                   エラー内容はDiscordに通知される（設定済みの場合）
    """
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    discord_webhook = os.environ.get("DISCORD_WEBHOOK_URL")

    settings = _load_settings()
    sqlite_path = os.environ.get("SQLITE_PATH", settings.output_db_path)
    repository = SqliteRepository.open(sqlite_path)

    try:
        result = run_textage_integration(repository, settings.textage)
        sp12 = run_unofficial_difficulty_integration(repository, settings.sp12)

        for warning in result.warnings[:10]:
            logger.warning(warning)
        if len(result.warnings) > 10:
            logger.warning("... and %d more warnings", len(result.warnings) - 10)

        msg = (
            f"✅ iidx_hub 更新成功\n"
            f"- songs added/updated: {result.songs_added}/{result.songs_updated}\n"
            f"- charts added/updated: {result.charts_added}/{result.charts_updated}\n"
            f"- warnings: {len(result.warnings)}\n"
            f"- unofficial updated: {sp12.charts_updated} (not found: {sp12.songs_not_found})\n"
            f"- updated_at: {now_iso()}\n"
        )
        send_discord_message(discord_webhook, msg)

        logger.info("SUCCESS")

    except Exception:
        err = traceback.format_exc()
        logger.error(err)
        send_discord_message(discord_webhook, f"❌ iidx_hub 更新失敗\n```{err[:1800]}```")
        raise

    finally:
        repository.close()


if __name__ == "__main__":
    main()
