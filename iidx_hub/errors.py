"""
アプリケーション固有の例外定義モジュール。

textage テーブルの取得・抽出・統合、SQLite 永続化などで発生する例外を
分類して扱うために、基底例外および派生例外を定義する。

致命度の方針:
- SourceUnavailableError / TableNotFoundError は実行全体を中断する。
- EntryMalformedError はエントリ単位でスキップし、警告として集約する。
- UnsupportedCombinationError はロジックの誤りであり、握りつぶさない。
"""

from __future__ import annotations


class IidxHubError(Exception):
    """曲データ統合システム全体の基底例外。"""


class ConfigError(IidxHubError):
    """設定ファイルの内容が不正な場合の例外。"""


class ScrapeError(IidxHubError):
    """外部ソース取得・解析処理に起因する例外。"""


class SourceUnavailableError(ScrapeError):
    """
    外部ソースの取得に失敗した場合の例外。

    Attributes:
        source: ソース名（例: "actbl.js"）。
        url: 取得対象URL。
        cause: 下位の通信例外。
    """

    def __init__(self, source: str, url: str, cause: BaseException | None = None):
        self.source = source
        self.url = url
        self.cause = cause
        detail = f" ({cause})" if cause is not None else ""
        super().__init__(f"{source} の取得に失敗しました: {url}{detail}")


class TableNotFoundError(ScrapeError):
    """期待する `name = {...};` オブジェクトリテラルが見つからない場合の例外。"""


class EntryMalformedError(ScrapeError):
    """テーブル内の1エントリが要素不足またはフィールド変換不能な場合の例外。"""


class UnsupportedCombinationError(IidxHubError):
    """構造上存在しない譜面（DP BEGINNER など）を要求した場合の例外。"""


class PersistenceError(IidxHubError):
    """SQLite への読み書きに失敗した場合の例外。"""
