"""
Recursive-descent parser for the C# expressions found in return statements
and attribute arguments.

The parser is lenient: tokens it does not understand are wrapped into
``NodeKind.OTHER`` nodes so that object creations further along can still be
found. It never raises on malformed input.
"""

from __future__ import annotations

import re
from typing import List, Optional, Sequence

from ..syntax import NodeKind, SyntaxNode
from .tokenizer import Token, TokenKind

OPENERS = {"(": ")", "[": "]", "{": "}"}
CLOSERS = {")", "]", "}"}

# Words that can never be (part of) a type name
NON_TYPE_WORDS = {
    "new", "return", "typeof", "sizeof", "default", "is", "as", "switch", "with",
    "await", "throw", "true", "false", "null", "this", "base", "ref", "out", "in",
    "when", "and", "or", "not", "delegate", "stackalloc", "checked", "unchecked",
}

BINARY_OPERATORS = {
    "+", "-", "*", "/", "%", "<", ">", "<=", ">=", "==", "!=",
    "&&", "||", "&", "|", "^", "??", "<<", "..",
}
ASSIGNMENT_OPERATORS = {"=", "+=", "-=", "*=", "/=", "%=", "&=", "|=", "^=", "??=", "<<="}
PREFIX_OPERATORS = {"!", "-", "+", "~", "++", "--", "&", "*", "^", ".."}

# Identifiers that end a cast's parenthesized type rather than start its operand
_NOT_CAST_OPERAND = {"is", "as", "switch", "with", "and", "or", "when"}

_ESCAPE = re.compile(r'\\(u[0-9a-fA-F]{4}|x[0-9a-fA-F]{1,4}|.)')
_SIMPLE_ESCAPES = {
    "n": "\n", "t": "\t", "r": "\r", "0": "\0", "a": "\a",
    "b": "\b", "f": "\f", "v": "\v", "\\": "\\", '"': '"', "'": "'",
}


def decode_string(text: str) -> Optional[str]:
    """Value of a regular or verbatim string literal; None for interpolated ones."""
    if text.startswith("$") or text.startswith("@$"):
        return None
    if text.startswith('"""'):
        return text.strip('"')
    if text.startswith('@"'):
        return text[2:-1].replace('""', '"')

    def unescape(match) -> str:
        code = match.group(1)
        if code[0] in "ux" and len(code) > 1:
            return chr(int(code[1:], 16))
        return _SIMPLE_ESCAPES.get(code, code)

    return _ESCAPE.sub(unescape, text[1:-1])


class ExpressionParser:
    """
    Parse a token slice into SyntaxNode trees.

    With ``attribute_mode`` set, ``Name = value`` inside an argument list is
    read as a named attribute argument instead of an assignment.
    """

    def __init__(self, source: str, tokens: Sequence[Token], attribute_mode: bool = False):
        self.source = source
        self.tokens = list(tokens)
        self.attribute_mode = attribute_mode
        self.pos = 0

    # -------------------------------------------------------------------------
    # Token helpers
    # -------------------------------------------------------------------------

    def peek(self, offset: int = 0) -> Optional[Token]:
        index = self.pos + offset
        if 0 <= index < len(self.tokens):
            return self.tokens[index]
        return None

    def at(self, text: str, offset: int = 0) -> bool:
        tok = self.peek(offset)
        return tok is not None and tok.kind in (TokenKind.PUNCT, TokenKind.IDENTIFIER) and tok.text == text

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        self.pos += 1
        return tok

    def span(self, start: int, end: int) -> str:
        """Source text covered by tokens[start:end]."""
        if end <= start or start >= len(self.tokens):
            return ""
        end = min(end, len(self.tokens))
        return self.source[self.tokens[start].start:self.tokens[end - 1].end]

    def type_text(self, start: int, end: int) -> str:
        """Tokens[start:end] as a compact type name, e.g. 'Dictionary<string, int>'."""
        parts = []
        for i in range(start, min(end, len(self.tokens))):
            text = self.tokens[i].text
            parts.append(text)
            if text == "," and i + 1 < end and self.tokens[i + 1].text not in (",", ">", "]"):
                parts.append(" ")
        return "".join(parts)

    def node(self, kind: NodeKind, start: int, name: Optional[str] = None, children=()) -> SyntaxNode:
        return SyntaxNode(kind, self.span(start, self.pos), name, tuple(children))

    def find_matching(self, index: int) -> Optional[int]:
        depth = 0
        for i in range(index, len(self.tokens)):
            tok = self.tokens[i]
            if tok.kind is not TokenKind.PUNCT:
                continue
            if tok.text in OPENERS:
                depth += 1
            elif tok.text in CLOSERS:
                depth -= 1
                if depth == 0:
                    return i
        return None

    def skip_group(self):
        close = self.find_matching(self.pos)
        self.pos = len(self.tokens) if close is None else close + 1

    def parse_block(self) -> List[SyntaxNode]:
        """Object creations inside the ``{...}`` block at the cursor, in source order."""
        close = self.find_matching(self.pos)
        end = len(self.tokens) if close is None else close
        creations = []
        i = self.pos + 1
        while i < end:
            tok = self.tokens[i]
            if tok.kind is TokenKind.IDENTIFIER and tok.text == "new":
                inner = ExpressionParser(self.source, self.tokens[i:end])
                creations.append(inner.parse_creation())
                i += max(inner.pos, 1)
            else:
                i += 1
        self.pos = end if close is None else close + 1
        return creations

    def skip_to_comma(self):
        while self.pos < len(self.tokens) and not self.at(","):
            if self.peek().text in OPENERS and self.peek().kind is TokenKind.PUNCT:
                self.skip_group()
            else:
                self.pos += 1

    # -------------------------------------------------------------------------
    # Type names (speculative, never consume)
    # -------------------------------------------------------------------------

    def skip_type(self, index: int, nullable: bool = False, arrays: bool = False) -> Optional[int]:
        """Index just past a type name starting at ``index``, or None."""
        tokens = self.tokens
        n = len(tokens)
        if index >= n:
            return None

        tok = tokens[index]
        if tok.kind is TokenKind.PUNCT and tok.text == "(":
            close = self.find_matching(index)
            if close is None:
                return None
            i = close + 1
        elif tok.kind is TokenKind.IDENTIFIER and tok.text not in NON_TYPE_WORDS:
            i = index + 1
            while True:
                if i < n and tokens[i].text == "<":
                    end = self.skip_type_arguments(i)
                    if end is None:
                        return None
                    i = end
                if i + 1 < n and tokens[i].text in (".", "::") and tokens[i + 1].kind is TokenKind.IDENTIFIER:
                    i += 2
                    continue
                break
        else:
            return None

        while i < n:
            text = tokens[i].text
            if nullable and text == "?":
                i += 1
                continue
            if arrays and text == "[":
                j = i + 1
                while j < n and tokens[j].text == ",":
                    j += 1
                if j < n and tokens[j].text == "]":
                    i = j + 1
                    continue
            break
        return i

    def skip_type_arguments(self, index: int) -> Optional[int]:
        """Index just past '<...>' starting at ``index``, or None."""
        tokens = self.tokens
        n = len(tokens)
        i = index + 1
        while True:
            if i < n and tokens[i].text not in (",", ">"):
                end = self.skip_type(i, nullable=True, arrays=True)
                if end is None:
                    return None
                i = end
            if i < n and tokens[i].text == ",":
                i += 1
                continue
            if i < n and tokens[i].text == ">":
                return i + 1
            return None

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def parse(self) -> Optional[SyntaxNode]:
        """Parse the whole slice as one expression."""
        if not self.tokens:
            return None

        nodes = []
        while self.pos < len(self.tokens):
            before = self.pos
            node = self.parse_expression()
            if self.pos == before:
                self.pos += 1
                node = self.node(NodeKind.OTHER, before)
            nodes.append(node)

        if len(nodes) == 1:
            return nodes[0]
        return SyntaxNode(NodeKind.OTHER, self.span(0, len(self.tokens)), None, tuple(nodes))

    def parse_items(self) -> List[SyntaxNode]:
        """Parse a comma separated argument list (without its brackets)."""
        items = []
        while self.pos < len(self.tokens):
            before = self.pos
            items.append(self.parse_argument())
            if self.at(","):
                self.advance()
            elif self.pos == before:
                self.pos += 1
            else:
                self.skip_to_comma()
                if self.at(","):
                    self.advance()
        return items

    def parse_group(self) -> List[SyntaxNode]:
        """Parse the bracketed group at the current position with a sub-parser."""
        close = self.find_matching(self.pos)
        if close is None:
            close = len(self.tokens)
        inner = ExpressionParser(self.source, self.tokens[self.pos + 1:close], self.attribute_mode)
        items = inner.parse_items()
        self.pos = min(close + 1, len(self.tokens))
        return items

    # -------------------------------------------------------------------------
    # Arguments
    # -------------------------------------------------------------------------

    def parse_argument(self) -> SyntaxNode:
        start = self.pos
        tok = self.peek()

        if tok is not None and tok.kind is TokenKind.IDENTIFIER:
            named = self.at(":", 1) or (self.attribute_mode and self.at("=", 1))
            if named:
                self.advance()
                self.advance()
                value = self.parse_argument_value()
                return self.node(NodeKind.NAMED_ARGUMENT, start, tok.value, (value,))

        return self.parse_argument_value()

    def parse_argument_value(self) -> SyntaxNode:
        start = self.pos
        tok = self.peek()
        if tok is not None and tok.kind is TokenKind.IDENTIFIER and tok.text in ("ref", "out", "in"):
            self.advance()
            # out var x / out int x
            end = self.skip_type(self.pos, nullable=True, arrays=True)
            if (end is not None and end < len(self.tokens)
                    and self.tokens[end].kind is TokenKind.IDENTIFIER
                    and (end + 1 == len(self.tokens) or self.tokens[end + 1].text == ",")):
                self.pos = end + 1
                return self.node(NodeKind.OTHER, start)
        return self.parse_expression()

    # -------------------------------------------------------------------------
    # Expressions
    # -------------------------------------------------------------------------

    def parse_expression(self) -> SyntaxNode:
        start = self.pos

        lambda_node = self.try_lambda()
        if lambda_node is not None:
            return lambda_node

        left = self.parse_conditional()
        tok = self.peek()
        if tok is not None and tok.kind is TokenKind.PUNCT and tok.text in ASSIGNMENT_OPERATORS:
            self.advance()
            right = self.parse_expression()
            return self.node(NodeKind.OTHER, start, children=(left, right))
        return left

    def try_lambda(self) -> Optional[SyntaxNode]:
        start = self.pos
        i = self.pos
        while i < len(self.tokens) and self.tokens[i].text in ("async", "static"):
            i += 1
        if i >= len(self.tokens):
            return None

        tok = self.tokens[i]
        if tok.kind is TokenKind.IDENTIFIER and i + 1 < len(self.tokens) and self.tokens[i + 1].text == "=>":
            arrow = i + 1
        elif tok.kind is TokenKind.PUNCT and tok.text == "(":
            close = self.find_matching(i)
            if close is None or close + 1 >= len(self.tokens) or self.tokens[close + 1].text != "=>":
                return None
            arrow = close + 1
        else:
            return None

        self.pos = arrow + 1
        if self.at("{"):
            return self.node(NodeKind.LAMBDA, start, children=self.parse_block())
        body = self.parse_expression()
        return self.node(NodeKind.LAMBDA, start, children=(body,))

    def parse_conditional(self) -> SyntaxNode:
        start = self.pos
        condition = self.parse_binary()
        if not self.at("?"):
            return condition

        self.advance()
        when_true = self.parse_expression()
        if self.at(":"):
            self.advance()
        when_false = self.parse_expression()
        return self.node(NodeKind.OTHER, start, children=(condition, when_true, when_false))

    def parse_binary(self) -> SyntaxNode:
        start = self.pos
        left = self.parse_unary()

        while True:
            tok = self.peek()
            if tok is None:
                break

            if tok.kind is TokenKind.IDENTIFIER and tok.text in ("is", "as"):
                self.advance()
                self.skip_pattern()
                left = self.node(NodeKind.OTHER, start, children=(left,))
            elif tok.kind is TokenKind.IDENTIFIER and tok.text == "switch" and self.at("{", 1):
                self.advance()
                arms = self.parse_switch_arms()
                left = self.node(NodeKind.OTHER, start, children=(left, *arms))
            elif tok.kind is TokenKind.IDENTIFIER and tok.text == "with" and self.at("{", 1):
                self.advance()
                members = self.parse_initializer()
                left = self.node(NodeKind.OTHER, start, children=(left, *members))
            elif tok.kind is TokenKind.PUNCT and tok.text in BINARY_OPERATORS:
                self.advance()
                # '>>' is lexed as two '>' so that nested generics close properly
                if tok.text == ">" and self.at(">") and self.peek().start == tok.end:
                    self.advance()
                right = self.parse_unary()
                left = self.node(NodeKind.OTHER, start, children=(left, right))
            else:
                break

        return left

    def skip_pattern(self):
        """Skip the type or pattern after 'is' / 'as'."""
        while True:
            if self.at("not"):
                self.advance()
            tok = self.peek()
            if tok is None:
                return
            if tok.kind in (TokenKind.NUMBER, TokenKind.STRING, TokenKind.CHAR) or tok.text in ("null", "true", "false"):
                self.advance()
            elif tok.kind is TokenKind.PUNCT and tok.text in ("{", "(", "["):
                self.skip_group()
            else:
                end = self.skip_type(self.pos, nullable=True, arrays=True)
                if end is None:
                    return
                self.pos = end
                if self.at("{"):
                    self.skip_group()

            # Designation: 'is UserDto user'
            tok = self.peek()
            if (tok is not None and tok.kind is TokenKind.IDENTIFIER
                    and tok.text not in NON_TYPE_WORDS and tok.text not in _NOT_CAST_OPERAND):
                self.advance()

            if self.at("and") or self.at("or"):
                self.advance()
                continue
            return

    def parse_switch_arms(self) -> List[SyntaxNode]:
        close = self.find_matching(self.pos)
        if close is None:
            close = len(self.tokens)
        inner = ExpressionParser(self.source, self.tokens[self.pos + 1:close])
        self.pos = min(close + 1, len(self.tokens))

        arms = []
        while inner.pos < len(inner.tokens):
            # Pattern and optional 'when' clause up to the arrow
            while inner.pos < len(inner.tokens) and not inner.at("=>"):
                if inner.peek().kind is TokenKind.PUNCT and inner.peek().text in OPENERS:
                    inner.skip_group()
                else:
                    inner.pos += 1
            if not inner.at("=>"):
                break
            inner.advance()
            before = inner.pos
            arms.append(inner.parse_expression())
            if inner.at(","):
                inner.advance()
            elif inner.pos == before:
                inner.pos += 1
        return arms

    def parse_unary(self) -> SyntaxNode:
        start = self.pos
        tok = self.peek()
        if tok is None:
            return SyntaxNode(NodeKind.OTHER, "")

        if tok.kind is TokenKind.PUNCT and tok.text in PREFIX_OPERATORS:
            self.advance()
            operand = self.parse_unary()
            return self.node(NodeKind.OTHER, start, children=(operand,))

        if tok.kind is TokenKind.IDENTIFIER and tok.text in ("await", "throw") and self.peek(1) is not None:
            following = self.peek(1)
            if not (following.kind is TokenKind.PUNCT and following.text in BINARY_OPERATORS | {")", ",", ";", "."}):
                self.advance()
                operand = self.parse_expression() if tok.text == "throw" else self.parse_unary()
                return self.node(NodeKind.OTHER, start, children=(operand,))

        if tok.kind is TokenKind.PUNCT and tok.text == "(":
            cast = self.try_cast()
            if cast is not None:
                return cast

        return self.parse_postfix(self.parse_primary(), start)

    def try_cast(self) -> Optional[SyntaxNode]:
        start = self.pos
        close = self.find_matching(start)
        if close is None or close == start + 1:
            return None
        if self.skip_type(start + 1, nullable=True, arrays=True) != close:
            return None
        if close + 1 >= len(self.tokens):
            return None

        after = self.tokens[close + 1]
        single_name = close == start + 2
        if after.kind in (TokenKind.NUMBER, TokenKind.STRING, TokenKind.CHAR):
            pass
        elif after.kind is TokenKind.IDENTIFIER:
            if after.text in _NOT_CAST_OPERAND:
                return None
        elif after.kind is TokenKind.PUNCT and after.text in ("(", "!", "~"):
            if single_name and after.text == "(":
                return None
        else:
            return None

        type_name = self.type_text(start + 1, close)
        self.pos = close + 1
        operand = self.parse_unary()
        return self.node(NodeKind.CAST, start, type_name, (operand,))

    def parse_primary(self) -> SyntaxNode:
        start = self.pos
        tok = self.peek()
        if tok is None:
            return SyntaxNode(NodeKind.OTHER, "")

        if tok.kind in (TokenKind.NUMBER, TokenKind.CHAR):
            self.advance()
            return self.node(NodeKind.LITERAL, start, tok.text)

        if tok.kind is TokenKind.STRING:
            self.advance()
            return self.node(NodeKind.LITERAL, start, decode_string(tok.text))

        if tok.kind is TokenKind.IDENTIFIER:
            word = tok.text

            if word == "new":
                return self.parse_creation()

            if word == "typeof" and self.at("(", 1):
                self.advance()
                close = self.find_matching(self.pos)
                if close is None:
                    close = len(self.tokens)
                inner_start = self.pos + 1
                if self.skip_type(inner_start, nullable=True, arrays=True) == close:
                    type_name = self.type_text(inner_start, close)
                else:
                    type_name = self.span(inner_start, close)
                self.pos = min(close + 1, len(self.tokens))
                return self.node(NodeKind.TYPEOF, start, type_name)

            if word in ("true", "false", "null") or (word == "default" and not self.at("(", 1)):
                self.advance()
                return self.node(NodeKind.LITERAL, start, word)

            if word == "delegate":
                self.advance()
                if self.at("("):
                    self.skip_group()
                body = self.parse_block() if self.at("{") else []
                return self.node(NodeKind.LAMBDA, start, children=body)

            self.advance()
            if self.at("<"):
                end = self.skip_type_arguments(self.pos)
                if end is not None and end < len(self.tokens) and self.tokens[end].text in ("(", ".", "?.", "::"):
                    self.pos = end
            return self.node(NodeKind.IDENTIFIER, start, tok.value)

        if tok.text == "(":
            items = self.parse_group()
            if len(items) == 1:
                return self.node(NodeKind.PARENTHESIZED, start, children=items)
            return self.node(NodeKind.OTHER, start, children=items)

        if tok.text == "[":
            items = self.parse_group()
            return self.node(NodeKind.OTHER, start, children=items)

        if tok.text == "{":
            return self.node(NodeKind.OTHER, start, children=self.parse_initializer())

        if tok.text in CLOSERS or tok.text in (",", ";", ":"):
            return SyntaxNode(NodeKind.OTHER, "")

        self.advance()
        return self.node(NodeKind.OTHER, start)

    def parse_postfix(self, node: SyntaxNode, start: int) -> SyntaxNode:
        while True:
            tok = self.peek()
            if tok is None or tok.kind is not TokenKind.PUNCT:
                return node

            text = tok.text
            if text in (".", "?.", "->", "::"):
                name_tok = self.peek(1)
                if name_tok is None or name_tok.kind is not TokenKind.IDENTIFIER:
                    return node
                self.advance()
                self.advance()
                if self.at("<"):
                    end = self.skip_type_arguments(self.pos)
                    if end is not None and end < len(self.tokens) and self.tokens[end].text == "(":
                        self.pos = end
                node = self.node(NodeKind.MEMBER_ACCESS, start, name_tok.value, (node,))
            elif text == "(":
                arguments = self.parse_group()
                node = self.node(NodeKind.INVOCATION, start, self.helper_name(node), (node, *arguments))
            elif text == "[":
                arguments = self.parse_group()
                node = self.node(NodeKind.OTHER, start, children=(node, *arguments))
            elif text in ("++", "--", "!"):
                self.advance()
                node = self.node(NodeKind.OTHER, start, children=(node,))
            else:
                return node

    @staticmethod
    def helper_name(target: SyntaxNode) -> str:
        """Name an invocation by its target; 'this.Ok' and 'base.Ok' count as 'Ok'."""
        if target.kind is NodeKind.IDENTIFIER and target.name:
            return target.name
        if (target.kind is NodeKind.MEMBER_ACCESS and target.children
                and target.children[0].kind is NodeKind.IDENTIFIER
                and target.children[0].name in ("this", "base")):
            return target.name
        return target.text

    # -------------------------------------------------------------------------
    # Object creation
    # -------------------------------------------------------------------------

    def parse_creation(self) -> SyntaxNode:
        start = self.pos
        self.advance()
        tok = self.peek()
        if tok is None:
            return self.node(NodeKind.OTHER, start)

        # new[] { ... } / new { ... } / new(...)
        if tok.kind is TokenKind.PUNCT and tok.text in ("[", "{", "("):
            children: List[SyntaxNode] = []
            if tok.text in ("[", "("):
                children.extend(self.parse_group())
            if self.at("{"):
                children.extend(self.parse_initializer())
            return self.node(NodeKind.OTHER, start, children=children)

        end = self.skip_type(self.pos, nullable=False, arrays=False)
        if end is None:
            return self.node(NodeKind.OTHER, start)

        type_name = self.type_text(self.pos, end)
        self.pos = end

        if self.at("["):
            # Array creation: new UserDto[3], new UserDto[] { ... }
            children = []
            while self.at("["):
                children.extend(self.parse_group())
            if self.at("{"):
                children.extend(self.parse_initializer())
            return self.node(NodeKind.OTHER, start, children=children)

        children = []
        if self.at("("):
            children.extend(self.parse_group())
        if self.at("{"):
            children.extend(self.parse_initializer())
        return self.node(NodeKind.OBJECT_CREATION, start, type_name, children)

    def parse_initializer(self) -> List[SyntaxNode]:
        """Parse '{ ... }' at the current position into its element values."""
        close = self.find_matching(self.pos)
        if close is None:
            close = len(self.tokens)
        inner = ExpressionParser(self.source, self.tokens[self.pos + 1:close])
        self.pos = min(close + 1, len(self.tokens))
        return inner.parse_initializer_items()

    def parse_initializer_items(self) -> List[SyntaxNode]:
        items = []
        while self.pos < len(self.tokens):
            before = self.pos
            tok = self.peek()

            if tok.kind is TokenKind.IDENTIFIER and self.at("=", 1):
                # Member = value
                self.advance()
                self.advance()
            elif self.at("[") and self.find_matching(self.pos) is not None:
                # [key] = value
                after = self.find_matching(self.pos) + 1
                if after < len(self.tokens) and self.tokens[after].text == "=":
                    items.extend(self.parse_group())
                    self.advance()

            value_start = self.pos
            if self.at("{"):
                nested = self.parse_initializer()
                items.append(SyntaxNode(NodeKind.OTHER, self.span(value_start, self.pos), None, tuple(nested)))
            else:
                items.append(self.parse_expression())

            if self.at(","):
                self.advance()
            elif self.pos == before:
                self.pos += 1
            else:
                self.skip_to_comma()
                if self.at(","):
                    self.advance()
        return items


def parse_expression(source: str, tokens: Sequence[Token], attribute_mode: bool = False) -> Optional[SyntaxNode]:
    """Parse ``tokens`` (a slice of ``source``'s tokens) as one expression."""
    return ExpressionParser(source, tokens, attribute_mode).parse()


def parse_arguments(source: str, tokens: Sequence[Token], attribute_mode: bool = False) -> List[SyntaxNode]:
    """Parse the tokens between an argument list's parentheses."""
    return ExpressionParser(source, tokens, attribute_mode).parse_items()
