"""
Syntax view consumed by the pipeline.

The pipeline never walks a full syntax tree. A syntax service (see
``swagify.csharp``) flattens each handler method into its top-level return
statements and its attribute lists, built from the small records below.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional, Tuple


class NodeKind(Enum):
    INVOCATION = "invocation"
    MEMBER_ACCESS = "member_access"
    OBJECT_CREATION = "object_creation"
    TYPEOF = "typeof"
    LITERAL = "literal"
    IDENTIFIER = "identifier"
    CAST = "cast"
    PARENTHESIZED = "parenthesized"
    NAMED_ARGUMENT = "named_argument"
    LAMBDA = "lambda"
    OTHER = "other"


@dataclass(frozen=True)
class SyntaxNode:
    """
    One expression node.

    ``name`` depends on the kind:
      - invocation: helper name being called
      - member access: the accessed member
      - object creation / typeof / cast: the type as written
      - literal: the decoded value of a string literal, else the source text
      - identifier / named argument: the identifier
    """
    kind: NodeKind
    text: str
    name: Optional[str] = None
    children: Tuple["SyntaxNode", ...] = ()

    @property
    def target(self) -> Optional["SyntaxNode"]:
        if self.kind is NodeKind.INVOCATION and self.children:
            return self.children[0]
        return None

    @property
    def arguments(self) -> Tuple["SyntaxNode", ...]:
        if self.kind is NodeKind.INVOCATION:
            return self.children[1:]
        return ()

    def walk(self) -> Iterator["SyntaxNode"]:
        """Depth-first, pre-order traversal starting with this node."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def unwrap(self) -> "SyntaxNode":
        """Strip casts, parentheses and argument names around a value."""
        node = self
        while node.kind in (NodeKind.CAST, NodeKind.PARENTHESIZED, NodeKind.NAMED_ARGUMENT) and node.children:
            node = node.children[-1]
        return node


@dataclass(frozen=True)
class ReturnStatement:
    """A return statement directly inside a method body."""
    expression: Optional[SyntaxNode]
    text: str = ""
    line: int = 0


@dataclass(frozen=True)
class Annotation:
    """
    One attribute list on a method, e.g. ``[SwaggerResponse(HttpStatusCode.OK, "Found")]``.

    Only the first attribute of the list is modelled; any further attributes in
    the same brackets are carried verbatim in ``trailing``.
    """
    name: str
    arguments: Tuple[SyntaxNode, ...] = ()
    target: Optional[str] = None
    trailing: Tuple[str, ...] = ()
    span: Optional[Tuple[int, int]] = None

    @property
    def positional_arguments(self) -> Tuple[SyntaxNode, ...]:
        return tuple(a for a in self.arguments if a.kind is not NodeKind.NAMED_ARGUMENT)

    @property
    def named_arguments(self) -> Tuple[SyntaxNode, ...]:
        return tuple(a for a in self.arguments if a.kind is NodeKind.NAMED_ARGUMENT)


@dataclass(frozen=True)
class HandlerMethod:
    """A block-bodied method flattened for the pipeline, plus host offsets."""
    name: str
    line: int
    returns: Tuple[ReturnStatement, ...]
    annotations: Tuple[Annotation, ...]
    declaration_start: int = 0
    body_start: int = 0
    indent: str = ""

    def contains(self, position: int) -> bool:
        """True when ``position`` falls in the declaration header."""
        return self.declaration_start <= position <= self.body_start


# =============================================================================
# FACTORIES
# =============================================================================

def identifier(name: str) -> SyntaxNode:
    return SyntaxNode(NodeKind.IDENTIFIER, name, name)


def member_access(receiver: str, member: str) -> SyntaxNode:
    return SyntaxNode(
        NodeKind.MEMBER_ACCESS,
        f"{receiver}.{member}",
        member,
        (identifier(receiver),),
    )


def string_literal(value: str) -> SyntaxNode:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return SyntaxNode(NodeKind.LITERAL, f'"{escaped}"', value)


def typeof_expression(type_name: str) -> SyntaxNode:
    return SyntaxNode(NodeKind.TYPEOF, f"typeof({type_name})", type_name)
