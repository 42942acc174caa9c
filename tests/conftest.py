from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from iidx_hub.db import SqliteRepository

ACTBL_JS = """
// actbl.js (test fixture)
actbl={
// 'retired':[1,0,0,0,0,1,1,2,1,3,1,0,0,0,0,1,1,2,1,3,1,0,0],
'song_a':[3,0,0,0,0,3,1,7,1,C,9,0,0,0,0,4,1,8,1,B,1,0,0,0,0,5],
'song_b':[9,0,0,2,1,5,1,9,1,A,1,C,1,0,0,5,1,9,1,A,1,C,1],
'home_only':[2,0,0,0,0,1,1,2,1,3,1,0,0,0,0,1,1,2,1,3,1,0,0],
'broken':[1,0,0,5],
'no_title':[1,0,0,0,0,4,1,6,1,8,1,0,0,0,0,4,1,6,1,8,1,0,0]
};
"""

DATATBL_JS = """
datatbl={
'song_a':[0,0,350,700,1100,0,0,400,800,1200,0,"150"],
'song_b':[0,200,400,800,1500,2000,0,410,820,1510,2010,"120～240"],
'home_only':[0,0,100,200,300,0,0,110,210,310,0,"90"],
'karma':[0,0,500,900,1300,1700,0,0,0,0,0,"180"]
};
"""

TITLETBL_JS = """
SS=35;
titletbl={
'__dmy__':[0,0,0,"","",""],
'song_a':[SS,1001,1,"GENRE A","Artist A","Song A"],
'song_b':[33,1002,0,"HARD&amp;CORE","ARTIST \\"B\\"","Song".fontcolor("#ff0000").link("http://example.com/a,b"),"<b> -sub-</b>"],
'home_only':[31,1003,,"POP","Home Artist","Home Song"],
//'old':[1,1,1,"G","A","T"],
'short':[1,2,3]
};
"""


@pytest.fixture
def actbl_js() -> str:
    return ACTBL_JS


@pytest.fixture
def datatbl_js() -> str:
    return DATATBL_JS


@pytest.fixture
def titletbl_js() -> str:
    return TITLETBL_JS


@pytest.fixture
def textage_payloads() -> dict[str, bytes]:
    """fetch 差し替え用の cp932 エンコード済みテーブル。"""
    return {
        "titletbl.js": TITLETBL_JS.encode("cp932"),
        "datatbl.js": DATATBL_JS.encode("cp932"),
        "actbl.js": ACTBL_JS.encode("cp932"),
    }


@pytest.fixture
def fake_fetch(textage_payloads):
    """`fetch(url, timeout=..., source=...)` 形式の取得関数を返す。"""
    calls: list[str] = []

    def _fetch(url, timeout=30, source=None, headers=None):
        calls.append(url)
        return textage_payloads[source]

    _fetch.calls = calls
    return _fetch


@pytest.fixture
def repository():
    repo = SqliteRepository.open(":memory:")
    try:
        yield repo
    finally:
        repo.close()
