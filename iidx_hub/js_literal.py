"""
textage の JS テーブル（オブジェクトリテラル）を走査するスキャナ群。

JSON への変換は行わず、文字列リテラル・丸括弧・角括弧の深さを追跡しながら
1文字ずつ走査して以下を取り出す。

- `name = {...}` の本体
- `'key': [ ... ]` 形式の各エントリ
- 配列本体のトップレベルトークン（引用符付きのまま）
"""

from __future__ import annotations

import re
from typing import Iterator

from iidx_hub.errors import TableNotFoundError

_QUOTES = ('"', "'")
_KEY_CHAR_RE = re.compile(r"[\w$]")


def _skip_line(text: str, index: int) -> int:
    """index から行末までを読み飛ばし、改行の次の位置を返す。"""
    newline = text.find("\n", index)
    return len(text) if newline == -1 else newline + 1


def find_closing(text: str, open_index: int, open_ch: str, close_ch: str) -> int | None:
    """
    text[open_index] の開き括弧に対応する閉じ括弧の位置を返す。

    文字列リテラル内の括弧と、文字列外の `//` 行コメントは無視する。
    見つからない場合は None。
    """
    index = open_index
    depth = 0
    in_str = False
    escaped = False
    str_char = ""
    while index < len(text):
        ch = text[index]
        if in_str:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == str_char:
                in_str = False
        elif ch in _QUOTES:
            in_str = True
            str_char = ch
        elif ch == "/" and text.startswith("//", index):
            index = _skip_line(text, index)
            continue
        elif ch == open_ch:
            depth += 1
        elif ch == close_ch:
            depth -= 1
            if depth == 0:
                return index
        index += 1
    return None


def locate_object_body(js_text: str, varname: str) -> str:
    """
    JSテキスト中の `varname = {...}` を探し、波括弧の内側を返す。

    Args:
        js_text: デコード済みの JS ソース全体。
        varname: 変数名（actbl / datatbl / titletbl）。

    Returns:
        `{` と対応する `}` の間の文字列。

    Raises:
        TableNotFoundError: 代入文または対応する閉じ括弧が見つからない場合。
    """
    match = re.search(rf"(?<![\w$]){re.escape(varname)}\s*=\s*\{{", js_text)
    if not match:
        raise TableNotFoundError(f"{varname} object not found in JavaScript content")

    brace_start = match.end() - 1
    end_index = find_closing(js_text, brace_start, "{", "}")
    if end_index is None:
        raise TableNotFoundError(f"{varname} の終了ブレースが見つかりません")

    return js_text[brace_start + 1 : end_index]


def strip_comment_lines(body: str) -> str:
    """`//` で始まる行（前後空白除去後）と空行を取り除く。"""
    lines = []
    for line in body.split("\n"):
        stripped = line.strip()
        if not stripped or stripped.startswith("//"):
            continue
        lines.append(line)
    return "\n".join(lines)


def _read_key(body: str, index: int) -> tuple[str, int] | None:
    """index 位置からキー（引用符付き or 識別子）を読み、(key, 次位置) を返す。"""
    ch = body[index]
    if ch in _QUOTES:
        out: list[str] = []
        pos = index + 1
        while pos < len(body):
            cur = body[pos]
            if cur == "\\" and pos + 1 < len(body):
                out.append(body[pos + 1])
                pos += 2
                continue
            if cur == ch:
                return "".join(out), pos + 1
            out.append(cur)
            pos += 1
        return None

    pos = index
    while pos < len(body) and _KEY_CHAR_RE.match(body[pos]):
        pos += 1
    if pos == index:
        return None
    return body[index:pos], pos


def _skip_value(body: str, index: int) -> int:
    """配列以外の値を次のトップレベルのカンマまで読み飛ばす。"""
    depth = 0
    in_str = False
    escaped = False
    str_char = ""
    while index < len(body):
        ch = body[index]
        if in_str:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == str_char:
                in_str = False
        elif ch in _QUOTES:
            in_str = True
            str_char = ch
        elif ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth -= 1
        elif ch == "," and depth <= 0:
            return index + 1
        index += 1
    return index


def iter_table_entries(body: str) -> Iterator[tuple[str, str]]:
    """
    オブジェクト本体から `'key': [ ... ]` を順に取り出す。

    Yields:
        (key, 配列の角括弧内側の文字列)。配列でない値のエントリは読み飛ばす。
    """
    index = 0
    length = len(body)
    while index < length:
        ch = body[index]
        if ch.isspace() or ch == ",":
            index += 1
            continue
        if ch == "/" and body.startswith("//", index):
            index = _skip_line(body, index)
            continue

        read = _read_key(body, index)
        if read is None:
            index += 1
            continue
        key, index = read

        while index < length and body[index].isspace():
            index += 1
        if index >= length or body[index] != ":":
            continue
        index += 1
        while index < length and body[index].isspace():
            index += 1
        if index >= length:
            break

        if body[index] != "[":
            index = _skip_value(body, index)
            continue

        close = find_closing(body, index, "[", "]")
        if close is None:
            yield key, body[index + 1 :]
            break
        yield key, body[index + 1 : close]
        index = close + 1


def split_literal_tokens(array_body: str) -> list[str]:
    """
    配列本体をトップレベルのカンマで分割し、トークン列を返す。

    文字列リテラル内（エスケープされていない同種の引用符で終了）、丸括弧内、
    角括弧内のカンマは区切りとして扱わない。各トークンは前後空白を除去し、
    引用符はそのまま残す。文字列外の `//` 行コメントは読み飛ばす。
    末尾の空でないトークンも出力する。

    Args:
        array_body: `[` と `]` の間の文字列。

    Returns:
        トークン文字列のリスト。
    """
    tokens: list[str] = []
    current: list[str] = []
    in_str = False
    escaped = False
    str_char = ""
    paren_depth = 0
    bracket_depth = 0

    index = 0
    while index < len(array_body):
        ch = array_body[index]
        index += 1
        if in_str:
            current.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == str_char:
                in_str = False
            continue

        if ch == "/" and array_body.startswith("/", index):
            # 行コメントは改行の手前まで読み飛ばす
            newline = array_body.find("\n", index)
            index = len(array_body) if newline == -1 else newline
            continue
        if ch in _QUOTES:
            in_str = True
            str_char = ch
        elif ch == "(":
            paren_depth += 1
        elif ch == ")":
            paren_depth -= 1
        elif ch == "[":
            bracket_depth += 1
        elif ch == "]":
            bracket_depth -= 1
        elif ch == "," and paren_depth == 0 and bracket_depth == 0:
            tokens.append("".join(current).strip())
            current = []
            continue
        current.append(ch)

    tail = "".join(current).strip()
    if tail:
        tokens.append(tail)
    return tokens
