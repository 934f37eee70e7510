"""
C# lexer.

Produces just enough tokens for locating methods, attribute lists and return
statements: comments, whitespace and preprocessor lines are dropped, every
literal becomes a single token.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import List

from ..base import SourceParseError


class TokenKind(Enum):
    IDENTIFIER = "identifier"
    NUMBER = "number"
    STRING = "string"
    CHAR = "char"
    PUNCT = "punct"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    start: int
    end: int
    line: int

    @property
    def value(self) -> str:
        """Identifier without its verbatim '@' prefix."""
        if self.kind is TokenKind.IDENTIFIER and self.text.startswith("@"):
            return self.text[1:]
        return self.text


# Longest first so that '??=' wins over '??' and '?'
PUNCTUATORS = (
    "??=", "<<=",
    "=>", "??", "?.", "::", "==", "!=", "<=", ">=", "&&", "||", "++", "--",
    "+=", "-=", "*=", "/=", "%=", "&=", "|=", "^=", "<<", "->", "..",
)

_IDENTIFIER = re.compile(r'@?[^\W\d]\w*')
_NUMBER = re.compile(
    r'0[xXbB][0-9a-fA-F_]+[uUlL]*'
    r'|\d[\d_]*(?:\.\d[\d_]*)?(?:[eE][+-]?\d+)?[fFdDmMuUlL]*'
    r'|\.\d[\d_]*(?:[eE][+-]?\d+)?[fFdDmM]?'
)
_STRING_PREFIX = re.compile(r'(\$*)(@?)(\$*)"')


class CSharpTokenizer:
    """Single-use lexer over one source string."""

    def __init__(self, source: str):
        self.source = source
        self.length = len(source)

    def tokenize(self) -> List[Token]:
        src = self.source
        tokens: List[Token] = []
        i = 0
        line = 1
        at_line_start = True

        while i < self.length:
            ch = src[i]

            if ch == "\n":
                line += 1
                i += 1
                at_line_start = True
                continue
            if ch.isspace() or ch == "\ufeff":
                i += 1
                continue

            # Preprocessor directives occupy the whole line
            if ch == "#" and at_line_start:
                end = src.find("\n", i)
                i = self.length if end == -1 else end
                continue
            at_line_start = False

            if src.startswith("//", i):
                end = src.find("\n", i)
                i = self.length if end == -1 else end
                continue

            if src.startswith("/*", i):
                end = src.find("*/", i + 2)
                if end == -1:
                    raise SourceParseError("unterminated comment", line)
                line += src.count("\n", i, end)
                i = end + 2
                continue

            match = _STRING_PREFIX.match(src, i)
            if match:
                end = self.read_string(i, line)
                tokens.append(Token(TokenKind.STRING, src[i:end], i, end, line))
                line += src.count("\n", i, end)
                i = end
                continue

            if ch == "'":
                end = self.read_char(i, line)
                tokens.append(Token(TokenKind.CHAR, src[i:end], i, end, line))
                i = end
                continue

            match = _IDENTIFIER.match(src, i)
            if match:
                tokens.append(Token(TokenKind.IDENTIFIER, match.group(), i, match.end(), line))
                i = match.end()
                continue

            match = _NUMBER.match(src, i)
            if match and (ch.isdigit() or ch == "."):
                tokens.append(Token(TokenKind.NUMBER, match.group(), i, match.end(), line))
                i = match.end()
                continue

            for punct in PUNCTUATORS:
                if src.startswith(punct, i):
                    break
            else:
                punct = ch
            tokens.append(Token(TokenKind.PUNCT, punct, i, i + len(punct), line))
            i += len(punct)

        return tokens

    def read_string(self, start: int, line: int) -> int:
        """Return the offset just past the string literal starting at ``start``."""
        src = self.source
        match = _STRING_PREFIX.match(src, start)
        dollars = len(match.group(1)) + len(match.group(3))
        verbatim = bool(match.group(2))
        quote = match.end() - 1

        # Raw string literal: """ ... """ (three or more quotes)
        if src.startswith('"""', quote):
            count = 3
            while src.startswith('"', quote + count):
                count += 1
            end = src.find('"' * count, quote + count)
            if end == -1:
                raise SourceParseError("unterminated raw string literal", line)
            return end + count

        j = quote + 1
        depth = 0
        while j < self.length:
            c = src[j]
            if depth:
                if _STRING_PREFIX.match(src, j):
                    j = self.read_string(j, line)
                    continue
                if c == "'":
                    j = self.read_char(j, line)
                    continue
                if c == "{":
                    depth += 1
                elif c == "}":
                    depth -= 1
                j += 1
                continue

            if c == "\\" and not verbatim:
                j += 2
                continue
            if c == '"':
                if verbatim and src.startswith('""', j):
                    j += 2
                    continue
                return j + 1
            if c == "\n" and not verbatim:
                break
            if dollars and c == "{":
                if src.startswith("{{", j):
                    j += 2
                    continue
                depth = 1
            j += 1

        raise SourceParseError("unterminated string literal", line)

    def read_char(self, start: int, line: int) -> int:
        src = self.source
        j = start + 1
        if j < self.length and src[j] == "\\":
            j += 2
        else:
            j += 1
        while j < self.length and src[j] not in "'\n":
            j += 1
        if j >= self.length or src[j] != "'":
            raise SourceParseError("unterminated character literal", line)
        return j + 1


def tokenize(source: str) -> List[Token]:
    """Tokenize C# source text."""
    return CSharpTokenizer(source).tokenize()
