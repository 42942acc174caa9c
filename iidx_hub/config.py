"""
設定ファイル(settings.yaml)の読み込み処理を提供するモジュール。

settings.yaml から textage / SP12 の取得先や SQLite の出力先などを読み込み、
アプリ内で扱いやすい dataclass に変換する。
"""

from __future__ import annotations

from dataclasses import dataclass, field

import yaml

from iidx_hub.errors import ConfigError

TITLE_URL = "https://textage.cc/score/titletbl.js"
DATA_URL = "https://textage.cc/score/datatbl.js"
ACT_URL = "https://textage.cc/score/actbl.js"
SP12_URL = "https://iidx-sp12.github.io/songs.json"


@dataclass(frozen=True)
class TextageConfig:
    """
    textage 取得設定。

    Attributes:
        title_url: titletbl.js のURL。
        data_url: datatbl.js のURL。
        act_url: actbl.js のURL。
        encoding: JSファイルの文字コード。
        timeout: 1リクエストあたりのタイムアウト秒。
        arcade_only: AC 収録曲のみを取り込むかどうか。
    """

    title_url: str = TITLE_URL
    data_url: str = DATA_URL
    act_url: str = ACT_URL
    encoding: str = "cp932"
    timeout: float = 30
    arcade_only: bool = True


@dataclass(frozen=True)
class Sp12Config:
    """SP☆12 非公式難易度表(JSON)の取得設定。"""

    url: str = SP12_URL
    timeout: float = 10


@dataclass(frozen=True)
class Settings:
    """
    アプリケーション全体設定。

    Attributes:
        textage: textage 取得設定。
        sp12: 非公式難易度表の取得設定。
        output_db_path: 出力SQLiteファイルパス。
    """

    textage: TextageConfig = field(default_factory=TextageConfig)
    sp12: Sp12Config = field(default_factory=Sp12Config)
    output_db_path: str = "iidx_hub.sqlite"


def _section(data: dict, name: str) -> dict:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"settings.{name} はマッピングである必要があります")
    return section


def load_settings(path: str) -> Settings:
    """
    settings.yaml を読み込み Settings に変換する。

    省略されたキーは既定値で補う。

    Args:
        path: settings.yaml のファイルパス。

    Returns:
        Settingsオブジェクト。

    Raises:
        FileNotFoundError: 設定ファイルが存在しない場合。
        yaml.YAMLError: YAMLのパースに失敗した場合。
        ConfigError: 構造や値が不正な場合。
    """
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigError("settings.yaml のトップレベルはマッピングである必要があります")

    textage_data = _section(data, "textage")
    sp12_data = _section(data, "sp12")
    defaults = TextageConfig()

    try:
        textage = TextageConfig(
            title_url=str(textage_data.get("title_url", TITLE_URL)),
            data_url=str(textage_data.get("data_url", DATA_URL)),
            act_url=str(textage_data.get("act_url", ACT_URL)),
            encoding=str(textage_data.get("encoding", defaults.encoding)),
            timeout=float(textage_data.get("timeout", defaults.timeout)),
            arcade_only=bool(textage_data.get("arcade_only", defaults.arcade_only)),
        )
        sp12 = Sp12Config(
            url=str(sp12_data.get("url", SP12_URL)),
            timeout=float(sp12_data.get("timeout", Sp12Config.timeout)),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"settings.yaml の値が不正です: {exc}") from exc

    return Settings(
        textage=textage,
        sp12=sp12,
        output_db_path=str(data.get("output_db_path", "iidx_hub.sqlite")),
    )
