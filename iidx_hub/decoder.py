"""
textage テーブルのトークン文字列を表示用テキストへ変換するデコーダ。

- 前後の引用符除去
- JavaScript のエスケープシーケンス (\\uXXXX, \\", \\', \\\\, \\n, \\r, \\t, \\/) のデコード
- HTML文字参照のデコードとタグ除去 (BeautifulSoup)
- タイトル用の `.fontcolor(...)` / `.link(...)` 装飾の除去
"""

from __future__ import annotations

import re

from bs4 import BeautifulSoup

from iidx_hub.errors import EntryMalformedError
from iidx_hub.js_literal import find_closing

_ESCAPE_RE = re.compile(r"\\(u[0-9a-fA-F]{4}|.)", flags=re.S)
_SIMPLE_ESCAPES = {
    '"': '"',
    "'": "'",
    "\\": "\\",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "/": "/",
}
_DECORATION_RE = re.compile(r"\.(?:fontcolor|link)\s*\(")
_INT_RE = re.compile(r"[+-]?\d+")


def unquote(token: str) -> str:
    """同種の引用符で囲まれている場合のみ、前後の引用符を除去する。"""
    if len(token) >= 2 and token[0] in ('"', "'") and token[-1] == token[0]:
        return token[1:-1]
    return token


def decode_escapes(text: str) -> str:
    """JavaScript のエスケープシーケンスをデコードする。未知のエスケープはそのまま残す。"""

    def _replace(match: re.Match[str]) -> str:
        seq = match.group(1)
        if len(seq) == 5:
            return chr(int(seq[1:], 16))
        return _SIMPLE_ESCAPES.get(seq, match.group(0))

    return _ESCAPE_RE.sub(_replace, text)


def html_to_text(text: str) -> str:
    """HTML文字参照をデコードし、タグを除去したテキストを返す。"""
    if "<" not in text and "&" not in text:
        return text
    return BeautifulSoup(text, "html.parser").get_text()


def decode_token(token: str) -> str:
    """
    トークンを表示用文字列へ変換する。

    Args:
        token: split_literal_tokens が返した生トークン。

    Returns:
        引用符除去・エスケープ解除・HTML除去済みの文字列。
    """
    text = unquote(token.strip())
    text = decode_escapes(text)
    return html_to_text(text)


def remove_decoration_calls(token: str) -> str:
    """文字列リテラル外の `.fontcolor(...)` / `.link(...)` 呼び出しを引数ごと除去する。"""
    out: list[str] = []
    index = 0
    in_str = False
    escaped = False
    str_char = ""
    while index < len(token):
        ch = token[index]
        if in_str:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == str_char:
                in_str = False
            index += 1
            continue

        if ch in ('"', "'"):
            in_str = True
            str_char = ch
        elif ch == ".":
            match = _DECORATION_RE.match(token, index)
            if match:
                close = find_closing(token, match.end() - 1, "(", ")")
                index = len(token) if close is None else close + 1
                continue
        out.append(ch)
        index += 1
    return "".join(out)


def strip_decoration(token: str) -> str:
    """装飾呼び出しを除去してから decode_token する（タイトル・サブタイトル用）。"""
    return decode_token(remove_decoration_calls(token.strip()))


def parse_int(token: str, field_name: str) -> int:
    """
    整数トークンを int に変換する。

    Raises:
        EntryMalformedError: 整数として解釈できない場合。
    """
    text = decode_token(token)
    if not _INT_RE.fullmatch(text):
        raise EntryMalformedError(f"invalid {field_name}: {token!r}")
    return int(text)
