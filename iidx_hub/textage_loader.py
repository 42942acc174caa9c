"""Textage からテーブルJSを並行取得し、テキストへデコードする。"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

from iidx_hub.config import TextageConfig
from iidx_hub.scraper import decode_text, fetch_bytes

logger = logging.getLogger(__name__)

Fetcher = Callable[..., bytes]


def fetch_textage_tables(
    config: Optional[TextageConfig] = None,
    fetch: Fetcher = fetch_bytes,
) -> tuple[str, str, str]:
    """
    Textage 3ファイルを並行取得し、デコード済みテキストを返す。

    3件すべての取得完了を待ってから返す。いずれかが失敗した場合は
    その例外（SourceUnavailableError）をそのまま送出する。

    Args:
        config: 取得先URL・文字コード・タイムアウト。
        fetch: `fetch(url, timeout=..., source=...) -> bytes` 形式の取得関数。

    Returns:
        (titletbl.js, datatbl.js, actbl.js) のテキスト。
    """
    config = config or TextageConfig()
    targets = {
        "titletbl.js": config.title_url,
        "datatbl.js": config.data_url,
        "actbl.js": config.act_url,
    }

    logger.info("Fetching %d tables from textage", len(targets))
    with ThreadPoolExecutor(max_workers=len(targets)) as executor:
        futures = {
            name: executor.submit(fetch, url, timeout=config.timeout, source=name)
            for name, url in targets.items()
        }
        payloads = {name: future.result() for name, future in futures.items()}

    for name, payload in payloads.items():
        logger.info("Fetched %s (%d bytes)", name, len(payload))

    return (
        decode_text(payloads["titletbl.js"], config.encoding),
        decode_text(payloads["datatbl.js"], config.encoding),
        decode_text(payloads["actbl.js"], config.encoding),
    )
