"""textage JS スキャナのテスト。"""

from __future__ import annotations

import pytest

from iidx_hub.errors import TableNotFoundError
from iidx_hub.js_literal import (
    iter_table_entries,
    locate_object_body,
    split_literal_tokens,
    strip_comment_lines,
)


def _top_level_commas(text: str) -> int:
    count = 0
    depth = 0
    in_str = False
    escaped = False
    quote = ""
    for ch in text:
        if in_str:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == quote:
                in_str = False
        elif ch in "\"'":
            in_str = True
            quote = ch
        elif ch in "([":
            depth += 1
        elif ch in ")]":
            depth -= 1
        elif ch == "," and depth == 0:
            count += 1
    return count


@pytest.mark.light
def test_split_literal_tokens_keeps_quotes():
    """引用符付きトークンは引用符を残したまま分割されることを確認する。"""
    tokens = split_literal_tokens(" 1, \"a,b\", 'c' , D ")
    assert tokens == ["1", '"a,b"', "'c'", "D"]


@pytest.mark.light
def test_split_literal_tokens_respects_parens_and_brackets():
    """丸括弧・角括弧内のカンマで分割しないことを確認する。"""
    tokens = split_literal_tokens('"T".fontcolor("a,b"),[1,[2,3]],(4,5),x')
    assert tokens == ['"T".fontcolor("a,b")', "[1,[2,3]]", "(4,5)", "x"]


@pytest.mark.light
def test_split_literal_tokens_handles_escaped_quotes():
    """エスケープされた引用符で文字列が終了しないことを確認する。"""
    tokens = split_literal_tokens(r'"a\",b",2,' + r"'it\'s, ok'")
    assert tokens == [r'"a\",b"', "2", r"'it\'s, ok'"]


@pytest.mark.light
def test_split_literal_tokens_escaped_backslash_closes_string():
    """`\\\\` の直後の引用符では文字列が終了することを確認する。"""
    tokens = split_literal_tokens(r'"a\\",b')
    assert tokens == [r'"a\\"', "b"]


@pytest.mark.light
def test_split_literal_tokens_flushes_only_non_empty_tail():
    """末尾カンマの後の空トークンは出力しないことを確認する。"""
    assert split_literal_tokens("1, 2, ") == ["1", "2"]
    assert split_literal_tokens("1,,2") == ["1", "", "2"]
    assert split_literal_tokens("   ") == []


@pytest.mark.light
@pytest.mark.parametrize(
    "body",
    [
        "1,2,3",
        '"a,b",(c,d),[e,f]',
        '"Song".fontcolor("#fff").link("x,y"),"sub"',
        r"'x\',y',q,[1,(2,3)]",
        "A,B,C,\"<font color='red'>R,G</font>\"",
    ],
)
def test_token_count_matches_top_level_commas(body: str):
    """トークン数がトップレベルのカンマ数+1と一致し、再結合で元に戻ることを確認する。"""
    tokens = split_literal_tokens(body)
    assert len(tokens) == _top_level_commas(body) + 1
    assert ",".join(tokens) == body


@pytest.mark.light
def test_locate_object_body_returns_inner_text():
    """代入文の波括弧内側を返すことを確認する。"""
    js = "var x=1;\nactbl = {\n'a':[1,'}'],\n// don't stop here }\n'b':[2]\n};\nfoo={};"
    body = locate_object_body(js, "actbl")
    assert body.startswith("\n'a'")
    assert body.rstrip().endswith("'b':[2]")


@pytest.mark.light
def test_locate_object_body_does_not_match_longer_names():
    """別名の変数 (xactbl) を誤検出しないことを確認する。"""
    with pytest.raises(TableNotFoundError):
        locate_object_body("xactbl={'a':[1]};", "actbl")


@pytest.mark.light
def test_locate_object_body_raises_for_unterminated_object():
    """閉じ括弧が無い場合に TableNotFoundError を送出することを確認する。"""
    with pytest.raises(TableNotFoundError):
        locate_object_body("datatbl={'a':[1,2]", "datatbl")


@pytest.mark.light
def test_strip_comment_lines():
    """`//` で始まる行と空行が除去されることを確認する。"""
    body = "'a':[1],\n   // 'b':[2],\n\n'c':[3]"
    assert strip_comment_lines(body) == "'a':[1],\n'c':[3]"


@pytest.mark.light
def test_iter_table_entries_yields_keys_in_order():
    """キーと配列本体が出現順に得られることを確認する。"""
    body = """
    'a':[1,"x]y",[2,3]],
    "b" : [ 4 ], // trailing comment
    c:[5],
    'skip':123,
    'd':["z"]
    """
    entries = list(iter_table_entries(body))
    assert entries == [
        ("a", '1,"x]y",[2,3]'),
        ("b", " 4 "),
        ("c", "5"),
        ("d", '"z"'),
    ]


@pytest.mark.light
def test_split_literal_tokens_skips_line_comments():
    """文字列外の `//` 行コメントがトークンに混入しないことを確認する。"""
    body = '1,2,0,"G","A","T" // it\'s a note, really\n'
    assert split_literal_tokens(body) == ["1", "2", "0", '"G"', '"A"', '"T"']

    body = '"http://example.com/a,b", 3 // tail\n, 4'
    assert split_literal_tokens(body) == ['"http://example.com/a,b"', "3", "4"]
