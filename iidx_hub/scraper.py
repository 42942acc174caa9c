"""
外部ソース取得処理。

指定されたURLからバイト列/JSONを取得する責務を持つ。
テーブルの解析は各 extractor 側で行い、本モジュールは通信とデコードのみを担当する。

例外方針:
- requests 由来の例外は SourceUnavailableError に変換して上位へ伝播する。
"""

from __future__ import annotations

from typing import Any, Optional

import requests

from iidx_hub.errors import SourceUnavailableError

DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
}

# textage は Shift-JIS (Windows拡張) で配信されている
DEFAULT_ENCODING = "cp932"


def _source_name(url: str) -> str:
    return url.rstrip("/").rsplit("/", 1)[-1] or url


def fetch_bytes(
    url: str,
    timeout: float = 30,
    headers: Optional[dict[str, str]] = None,
    source: Optional[str] = None,
) -> bytes:
    """
    指定URLへHTTP GETを行い、レスポンス本文をバイト列で返す。

    Args:
        url: 取得対象URL。
        timeout: requests.get に渡すタイムアウト秒。
        headers: 追加のリクエストヘッダー。
        source: エラー報告用のソース名。省略時はURL末尾のファイル名。

    Returns:
        レスポンス本文。

    Raises:
        SourceUnavailableError: HTTPエラーや通信失敗、タイムアウトが発生した場合。
    """
    try:
        r = requests.get(url, headers={**DEFAULT_HEADERS, **(headers or {})}, timeout=timeout)
        r.raise_for_status()
        return r.content
    except requests.RequestException as e:
        raise SourceUnavailableError(source or _source_name(url), url, e) from e


def fetch_json(url: str, timeout: float = 10, source: Optional[str] = None) -> Any:
    """
    指定URLからJSONを取得して返す。

    Raises:
        SourceUnavailableError: 通信失敗、またはJSONとして解釈できない場合。
    """
    try:
        r = requests.get(url, headers=DEFAULT_HEADERS, timeout=timeout)
        r.raise_for_status()
        return r.json()
    except (requests.RequestException, ValueError) as e:
        raise SourceUnavailableError(source or _source_name(url), url, e) from e


def decode_text(data: bytes, encoding: str = DEFAULT_ENCODING) -> str:
    """バイト列をテキストへデコードする。変換できないバイトは置換文字にする。"""
    return data.decode(encoding, errors="replace")
