"""
C# syntax service.

Turns controller source into the flat records the pipeline consumes and
writes regenerated attribute lists back into the document.
"""

from .tokenizer import Token, TokenKind, CSharpTokenizer, tokenize
from .expressions import ExpressionParser, decode_string, parse_arguments, parse_expression
from .controller import ControllerParser, parse_controller
from .rewriter import (
    TextEdit,
    annotation_edits,
    apply_annotations,
    apply_edits,
    render_annotation,
)

__all__ = [
    # Lexing
    "Token",
    "TokenKind",
    "CSharpTokenizer",
    "tokenize",
    # Parsing
    "ExpressionParser",
    "decode_string",
    "parse_arguments",
    "parse_expression",
    "ControllerParser",
    "parse_controller",
    # Rewriting
    "TextEdit",
    "annotation_edits",
    "apply_annotations",
    "apply_edits",
    "render_annotation",
]
