from __future__ import annotations

import pytest

from swagify.base import SourceParseError
from swagify.csharp.tokenizer import TokenKind, tokenize


def texts(source):
    return [t.text for t in tokenize(source)]


def test_comments_and_preprocessor_lines_are_skipped():
    source = """
#if DEBUG
// line comment
/* block
   comment */ return Ok(); // trailing
#endif
"""
    assert texts(source) == ["return", "Ok", "(", ")", ";"]


def test_line_numbers_count_through_block_comments():
    tokens = tokenize("/* a\nb */\nreturn\n  x;")
    assert [(t.text, t.line) for t in tokens] == [("return", 3), ("x", 4), (";", 4)]


def test_longest_punctuator_wins():
    assert texts("a ??= b ?? c?.d => e :: f") == [
        "a", "??=", "b", "??", "c", "?.", "d", "=>", "e", "::", "f",
    ]


def test_shift_right_is_two_tokens():
    assert texts("List<List<int>>") == ["List", "<", "List", "<", "int", ">", ">"]


def test_verbatim_identifier_value():
    token = tokenize("@class")[0]
    assert token.kind is TokenKind.IDENTIFIER
    assert token.text == "@class"
    assert token.value == "class"


@pytest.mark.parametrize("literal", [
    r'"plain \"quoted\" text"',
    r'@"C:\temp\""file"""',
    r'$"Hello {user.Name}"',
    r'$"{(flag ? "yes" : "no")} done"',
    r'$@"C:\{folder}\out"',
    '"""\n  raw "quoted" text\n  """',
    '$$"""{{{value}}}"""',
])
def test_string_literals_are_single_tokens(literal):
    tokens = tokenize(f"Ok({literal});")
    assert [t.kind for t in tokens][:3] == [TokenKind.IDENTIFIER, TokenKind.PUNCT, TokenKind.STRING]
    assert tokens[2].text == literal
    assert [t.text for t in tokens[3:]] == [")", ";"]


def test_char_literals():
    assert [t.kind for t in tokenize(r"'a' '\'' '\n'")] == [TokenKind.CHAR] * 3


def test_numbers():
    assert [t.text for t in tokenize("1 0x1F 3.14m 1_000L .5f")] == ["1", "0x1F", "3.14m", "1_000L", ".5f"]
    assert {t.kind for t in tokenize("1 0x1F 3.14m")} == {TokenKind.NUMBER}


def test_offsets_map_back_to_source():
    source = 'return  NotFound( "x" );'
    for token in tokenize(source):
        assert source[token.start:token.end] == token.text


def test_byte_order_mark_is_ignored():
    assert texts("\ufeffusing System;") == ["using", "System", ";"]


@pytest.mark.parametrize("source", ['"never closed', "'a", "/* open", '"""raw', '"line\nbreak"'])
def test_unterminated_literals_raise(source):
    with pytest.raises(SourceParseError):
        tokenize(source)
