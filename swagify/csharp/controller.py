"""
Locate controller actions in C# source and flatten them into HandlerMethod records.

Works on the token stream with brace matching, the same way the controller
scanner walks class bodies: no semantic model, just enough structure to find
method headers, their attribute lists and the return statements directly
inside their bodies.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Tuple

from ..syntax import Annotation, HandlerMethod, ReturnStatement
from .expressions import OPENERS, CLOSERS, parse_arguments, parse_expression
from .tokenizer import Token, TokenKind, tokenize

logger = logging.getLogger("swagify.csharp.controller")

TYPE_KEYWORDS = {"class", "struct", "interface", "record"}

MODIFIERS = {
    "public", "private", "protected", "internal", "static", "virtual", "override",
    "abstract", "sealed", "async", "extern", "unsafe", "partial", "readonly", "file",
}

# Words that can precede '(' in a body but never name a method
NOT_METHOD_NAMES = {
    "if", "while", "for", "foreach", "switch", "catch", "using", "lock", "fixed",
    "return", "when", "typeof", "sizeof", "nameof", "default", "operator", "this", "base",
}


class ControllerParser:
    """
    Parse one C# document.

    Only block-bodied methods declared directly in a class, struct, record or
    interface body are reported. Constructors, operators, properties and
    expression-bodied members are skipped.
    """

    def __init__(self, source: str):
        self.source = source
        self.tokens: List[Token] = tokenize(source)

    def parse(self) -> List[HandlerMethod]:
        methods: List[HandlerMethod] = []
        self._scan_members(0, len(self.tokens), False, methods)
        logger.debug(f"Found {len(methods)} method(s)")
        return methods

    # -------------------------------------------------------------------------
    # Token helpers
    # -------------------------------------------------------------------------

    def _is_punct(self, index: int, text: str) -> bool:
        tok = self.tokens[index]
        return tok.kind is TokenKind.PUNCT and tok.text == text

    def _find_matching(self, index: int, limit: int) -> int:
        """Index of the closer matching the opener at ``index`` (``limit`` if unbalanced)."""
        depth = 0
        for i in range(index, limit):
            tok = self.tokens[i]
            if tok.kind is not TokenKind.PUNCT:
                continue
            if tok.text in OPENERS:
                depth += 1
            elif tok.text in CLOSERS:
                depth -= 1
                if depth == 0:
                    return i
        return limit

    def _statement_end(self, index: int, limit: int) -> int:
        """Index of the ';' ending the statement that continues at ``index``."""
        i = index
        while i < limit:
            tok = self.tokens[i]
            if tok.kind is TokenKind.PUNCT:
                if tok.text in OPENERS:
                    i = self._find_matching(i, limit) + 1
                    continue
                if tok.text == ";":
                    return i
            i += 1
        return limit

    # -------------------------------------------------------------------------
    # Declarations
    # -------------------------------------------------------------------------

    def _scan_members(self, begin: int, end: int, in_type: bool, methods: List[HandlerMethod]):
        member_start = begin
        i = begin

        while i < end:
            tok = self.tokens[i]
            if tok.kind is not TokenKind.PUNCT:
                i += 1
                continue

            text = tok.text
            if text in ("[", "("):
                i = self._find_matching(i, end) + 1
            elif text == ";":
                i += 1
                member_start = i
            elif text in ("=", "=>") and in_type:
                # Field initializer or expression-bodied member
                i = self._statement_end(i, end) + 1
                member_start = i
            elif text == "{":
                close = self._find_matching(i, end)
                kind = self._classify(member_start, i)
                if kind in ("type", "namespace"):
                    self._scan_members(i + 1, close, kind == "type", methods)
                elif kind == "method" and in_type:
                    method = self._build_method(member_start, i, close)
                    if method is not None:
                        methods.append(method)
                i = close + 1
                member_start = i
            elif text == "}":
                i += 1
                member_start = i
            else:
                i += 1

    def _classify(self, begin: int, brace: int) -> str:
        """What the '{' at ``brace`` opens: type, namespace, method or other."""
        i = begin
        while i < brace:
            tok = self.tokens[i]
            if tok.kind is TokenKind.PUNCT and tok.text == "[":
                i = self._find_matching(i, brace) + 1
                continue
            if tok.kind is TokenKind.IDENTIFIER:
                if tok.text in TYPE_KEYWORDS:
                    return "type"
                if tok.text == "namespace":
                    return "namespace"
                if tok.text in ("enum", "delegate", "event"):
                    return "other"
            if tok.kind is TokenKind.PUNCT and tok.text == "(":
                return "method"
            i += 1
        return "other"

    def _build_method(self, begin: int, brace: int, close: int) -> Optional[HandlerMethod]:
        tokens = self.tokens

        attribute_lists: List[Tuple[int, int]] = []
        i = begin
        while i < brace and self._is_punct(i, "["):
            end = self._find_matching(i, brace)
            if end >= brace:
                return None
            attribute_lists.append((i, end))
            i = end + 1
        signature_start = i

        # Parameter list: the group followed by the body or a where clause.
        # Earlier groups belong to a tuple return type.
        paren = None
        j = signature_start
        while j < brace:
            if self._is_punct(j, "("):
                end = self._find_matching(j, brace)
                if end >= brace:
                    return None
                if end + 1 == brace or tokens[end + 1].text == "where":
                    paren = j
                    break
                j = end + 1
                continue
            j += 1
        if paren is None:
            return None

        name_index = paren - 1
        if name_index >= signature_start and self._is_punct(name_index, ">"):
            # Generic method: skip back over <T, U>
            depth = 0
            while name_index >= signature_start:
                if self._is_punct(name_index, ">"):
                    depth += 1
                elif self._is_punct(name_index, "<"):
                    depth -= 1
                    if depth == 0:
                        break
                name_index -= 1
            name_index -= 1

        # A return type must precede the name; constructors only have modifiers
        if name_index <= signature_start:
            return None
        name_tok = tokens[name_index]
        if name_tok.kind is not TokenKind.IDENTIFIER or name_tok.text in NOT_METHOD_NAMES:
            return None
        previous = tokens[name_index - 1]
        if previous.kind is TokenKind.IDENTIFIER and (previous.text in MODIFIERS or previous.text == "operator"):
            return None
        if previous.kind is TokenKind.PUNCT and previous.text not in (">", "]", "?", ")"):
            return None

        # Nothing but generic constraints may sit between ')' and '{'
        paren_close = self._find_matching(paren, brace)
        if paren_close >= brace:
            return None
        if paren_close + 1 < brace and tokens[paren_close + 1].text != "where":
            return None

        declaration_start = tokens[begin].start
        line_start = self.source.rfind("\n", 0, declaration_start) + 1
        indent = re.match(r'[ \t]*', self.source[line_start:declaration_start]).group()

        return HandlerMethod(
            name=name_tok.value,
            line=name_tok.line,
            returns=tuple(self._top_level_returns(brace, close)),
            annotations=tuple(self._parse_attribute_list(o, c) for o, c in attribute_lists),
            declaration_start=declaration_start,
            body_start=tokens[brace].start,
            indent=indent,
        )

    def _parse_attribute_list(self, open_index: int, close_index: int) -> Annotation:
        tokens = self.tokens
        i = open_index + 1

        target = None
        if (i + 1 < close_index and tokens[i].kind is TokenKind.IDENTIFIER
                and self._is_punct(i + 1, ":")):
            target = tokens[i].text
            i += 2

        # Attributes separated by top-level commas
        attributes: List[Tuple[int, int]] = []
        segment_start = i
        j = i
        while j < close_index:
            tok = tokens[j]
            if tok.kind is TokenKind.PUNCT and tok.text in OPENERS:
                j = self._find_matching(j, close_index) + 1
                continue
            if tok.kind is TokenKind.PUNCT and tok.text == ",":
                attributes.append((segment_start, j))
                segment_start = j + 1
            j += 1
        if segment_start < close_index:
            attributes.append((segment_start, close_index))

        span = (tokens[open_index].start, tokens[close_index].end)
        if not attributes:
            return Annotation(name="", target=target, span=span)

        first_start, first_end = attributes[0]
        name_end = first_start
        while name_end < first_end and not self._is_punct(name_end, "("):
            name_end += 1
        name = "".join(tok.text for tok in tokens[first_start:name_end])

        arguments = ()
        if name_end < first_end:
            paren_close = self._find_matching(name_end, first_end)
            arguments = tuple(parse_arguments(self.source, tokens[name_end + 1:paren_close], attribute_mode=True))

        trailing = tuple(
            self.source[tokens[s].start:tokens[e - 1].end] for s, e in attributes[1:] if e > s
        )
        return Annotation(name=name, arguments=arguments, target=target, trailing=trailing, span=span)

    # -------------------------------------------------------------------------
    # Statements
    # -------------------------------------------------------------------------

    def _top_level_returns(self, brace: int, close: int) -> List[ReturnStatement]:
        """Return statements that are direct children of the body block."""
        tokens = self.tokens
        returns = []
        depth = 0
        at_statement_start = True
        i = brace + 1

        while i < close:
            tok = tokens[i]

            if tok.kind is TokenKind.PUNCT and tok.text in OPENERS:
                depth += 1
                at_statement_start = False
            elif tok.kind is TokenKind.PUNCT and tok.text in CLOSERS:
                depth -= 1
                # A closed block at body level ends a statement
                at_statement_start = depth == 0 and tok.text == "}"
            elif depth == 0 and tok.kind is TokenKind.PUNCT and tok.text == ";":
                at_statement_start = True
            elif depth == 0 and at_statement_start and tok.kind is TokenKind.IDENTIFIER and tok.text == "return":
                end = self._statement_end(i + 1, close)
                expression = parse_expression(self.source, tokens[i + 1:end])
                text_end = tokens[end].end if end < close else tokens[end - 1].end
                returns.append(ReturnStatement(expression, self.source[tok.start:text_end], tok.line))
                i = end + 1
                at_statement_start = True
                continue
            else:
                at_statement_start = False

            i += 1

        return returns


def parse_controller(source: str) -> List[HandlerMethod]:
    """All block-bodied methods declared in ``source``."""
    return ControllerParser(source).parse()
