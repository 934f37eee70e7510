#!/usr/bin/env python3
"""
Response Extractor
===================
Derives (status code, payload type) pairs from a handler's return statements
and reads the existing response annotations into the same shape.

Recognizes:
- Bare values (return user;) → 200 OK
- Result helpers (return NotFound();) → code from the helper table
- Parametric helpers (return StatusCode(HttpStatusCode.Conflict, dto);)
- Payload types from the first `new T(...)` in the returned expression
"""

import logging
from typing import Dict, FrozenSet, Iterable, List, Optional

from .base import (
    DEFAULT_ANNOTATION_NAME,
    AnnotationEntry,
    ResponseCode,
    ReturnSite,
    UnparseableStatusCode,
    UnrecognizedResponseForm,
)
from .syntax import Annotation, NodeKind, ReturnStatement, SyntaxNode

logger = logging.getLogger("swagify.extractor")


def parse_status_code(node: Optional[SyntaxNode]) -> ResponseCode:
    """
    Read a status code from an argument such as ``HttpStatusCode.NotFound``.

    Casts and parentheses around the member access are ignored, so
    ``(int)HttpStatusCode.NotFound`` is accepted too.

    Raises:
        UnparseableStatusCode: the argument is missing or does not name a member.
    """
    if node is None:
        raise UnparseableStatusCode("<missing argument>")

    value = node.unwrap()
    if value.kind is NodeKind.MEMBER_ACCESS and value.name:
        try:
            return ResponseCode.from_name(value.name)
        except UnparseableStatusCode:
            raise UnparseableStatusCode(node.text) from None

    raise UnparseableStatusCode(node.text)


def find_payload_type(expression: Optional[SyntaxNode]) -> Optional[str]:
    """Type name of the first object created in ``expression``, depth first."""
    if expression is None:
        return None
    for node in expression.walk():
        if node.kind is NodeKind.OBJECT_CREATION:
            return node.name
    return None


class ResponseExtractor:
    """
    Extract observed and declared responses for one handler method.

    The helper vocabulary is data: HELPER_CODES maps fixed-code helpers and
    PARAMETRIC_HELPERS lists helpers whose first argument names the code.
    Anything else aborts the extraction.
    """

    HELPER_CODES: Dict[str, ResponseCode] = {
        "Ok": ResponseCode.OK,
        "Created": ResponseCode.Created,
        "BadRequest": ResponseCode.BadRequest,
        "Conflict": ResponseCode.Conflict,
        "NotFound": ResponseCode.NotFound,
        "Unauthorized": ResponseCode.Unauthorized,
        "InternalServerError": ResponseCode.InternalServerError,
        "Redirect": ResponseCode.Redirect,
    }

    PARAMETRIC_HELPERS: FrozenSet[str] = frozenset({"Content", "StatusCode"})

    def __init__(self, annotation_name: str = DEFAULT_ANNOTATION_NAME):
        self.annotation_name = annotation_name

    @classmethod
    def resolve_helper(cls, invocation: SyntaxNode) -> ResponseCode:
        """
        Map a result helper call to the status code it produces.

        Raises:
            UnrecognizedResponseForm: the helper is not in the vocabulary.
            UnparseableStatusCode: a parametric helper's first argument is not a code.
        """
        helper = invocation.name or invocation.text

        if helper in cls.HELPER_CODES:
            return cls.HELPER_CODES[helper]

        if helper in cls.PARAMETRIC_HELPERS:
            arguments = invocation.arguments
            return parse_status_code(arguments[0] if arguments else None)

        raise UnrecognizedResponseForm(helper)

    def extract_returns(self, returns: Iterable[ReturnStatement]) -> List[ReturnSite]:
        """
        Derive one ReturnSite per top-level return statement, in source order.

        Args:
            returns: Return statements directly inside the method body

        Returns:
            List of ReturnSite, one per statement
        """
        sites = []

        for statement in returns:
            expression = statement.expression

            if expression is not None and expression.kind is NodeKind.INVOCATION:
                code = self.resolve_helper(expression)
            else:
                # Plain values are serialized with 200
                code = ResponseCode.OK

            site = ReturnSite(code=code, payload_type=find_payload_type(expression))
            sites.append(site)
            logger.debug(f"Return at line {statement.line}: {site.code.name} ({site.payload_type})")

        return sites

    def is_response_annotation(self, annotation: Annotation) -> bool:
        return annotation.name == self.annotation_name

    def read_entry(self, annotation: Annotation) -> AnnotationEntry:
        """Read one response annotation as an AnnotationEntry."""
        positional = annotation.positional_arguments

        code = parse_status_code(positional[0] if positional else None)

        description = ""
        if len(positional) >= 2:
            node = positional[1]
            description = node.name if node.kind is NodeKind.LITERAL and node.name is not None else node.text

        payload_type = None
        if len(positional) >= 3 and positional[2].kind is NodeKind.TYPEOF:
            payload_type = positional[2].name

        return AnnotationEntry(code=code, description=description, payload_type=payload_type)

    def extract_declared(self, annotations: Iterable[Annotation]) -> Dict[ResponseCode, AnnotationEntry]:
        """
        Read the declared responses from a method's attribute lists.

        Attribute lists that are not response annotations are ignored. When a
        code is declared twice the later declaration wins.
        """
        declared: Dict[ResponseCode, AnnotationEntry] = {}

        for annotation in annotations:
            if not self.is_response_annotation(annotation):
                continue
            entry = self.read_entry(annotation)
            if entry.code in declared:
                logger.debug(f"Duplicate declaration for {entry.code.name}, keeping the last one")
            declared[entry.code] = entry

        return declared
