"""
曲名の正規化ユーティリティ。

外部ソース（SP12 非公式難易度表など）の曲名と textage 由来の曲名を
突き合わせるための検索キーを生成する。大文字小文字・全角半角・
引用符やハイフン類・波ダッシュ類の表記揺れを同一視する。
"""

from __future__ import annotations

import re
import unicodedata
from typing import Optional

_TRANSLATION = str.maketrans(
    {
        **{c: "-" for c in "‐‑‒–—―−"},
        **{c: "~" for c in "〜～"},
        **{c: '"' for c in "“”„‟「」『』"},
        **{c: "'" for c in "’‘‚‛"},
        "　": " ",
    }
)
_SPACE_RE = re.compile(r"\s+")


def normalize_title(s: Optional[str]) -> str:
    """
    曲名を検索用キーへ正規化する。

    NFKC 正規化、記号類の統一、連続空白の単一化、casefold を行う。
    None は空文字として扱う。
    """
    if s is None:
        return ""

    s = unicodedata.normalize("NFKC", s).translate(_TRANSLATION)
    return _SPACE_RE.sub(" ", s).strip().casefold()
