"""settings.yaml 読み込みのテスト。"""

from __future__ import annotations

import pytest

from iidx_hub.config import ACT_URL, SP12_URL, load_settings
from iidx_hub.errors import ConfigError


@pytest.mark.light
def test_load_settings_full(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text(
        "textage:\n"
        "  act_url: http://localhost/actbl.js\n"
        "  encoding: shift_jis\n"
        "  timeout: 5\n"
        "  arcade_only: false\n"
        "sp12:\n"
        "  timeout: 3\n"
        "output_db_path: out.sqlite\n",
        encoding="utf-8",
    )
    settings = load_settings(str(path))

    assert settings.textage.act_url == "http://localhost/actbl.js"
    assert settings.textage.encoding == "shift_jis"
    assert settings.textage.timeout == 5.0
    assert settings.textage.arcade_only is False
    assert settings.sp12.url == SP12_URL
    assert settings.sp12.timeout == 3.0
    assert settings.output_db_path == "out.sqlite"


@pytest.mark.light
def test_load_settings_defaults_for_empty_file(tmp_path):
    """空ファイルでは既定値が使われることを確認する。"""
    path = tmp_path / "settings.yaml"
    path.write_text("", encoding="utf-8")
    settings = load_settings(str(path))

    assert settings.textage.act_url == ACT_URL
    assert settings.textage.encoding == "cp932"
    assert settings.textage.arcade_only is True
    assert settings.output_db_path == "iidx_hub.sqlite"


@pytest.mark.light
@pytest.mark.parametrize(
    "content",
    [
        "- a\n- b\n",
        "textage: [1, 2]\n",
        "textage:\n  timeout: soon\n",
    ],
)
def test_load_settings_invalid(tmp_path, content):
    path = tmp_path / "settings.yaml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_settings(str(path))


@pytest.mark.light
def test_load_settings_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_settings(str(tmp_path / "missing.yaml"))
