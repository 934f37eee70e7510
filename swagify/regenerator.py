"""
Rebuild a method's attribute lists from a reconciled response map.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Sequence, Set, Tuple

from .base import (
    DEFAULT_ANNOTATION_NAME,
    DEFAULT_STATUS_ENUM_NAME,
    DESCRIPTION_PLACEHOLDER,
    AnnotationEntry,
    ReconciliationMap,
    ResponseCode,
)
from .extractor import parse_status_code
from .syntax import Annotation, SyntaxNode, member_access, string_literal, typeof_expression

logger = logging.getLogger("swagify.regenerator")


class AnnotationRegenerator:
    """
    Produce a new attribute list sequence in one pass.

    Existing response annotations are rebuilt where they stand, keeping their
    code and description arguments. Other attributes pass through untouched.
    Codes that had no annotation are appended at the end.
    """

    def __init__(
        self,
        annotation_name: str = DEFAULT_ANNOTATION_NAME,
        status_enum_name: str = DEFAULT_STATUS_ENUM_NAME,
        placeholder: str = DESCRIPTION_PLACEHOLDER,
    ):
        self.annotation_name = annotation_name
        self.status_enum_name = status_enum_name
        self.placeholder = placeholder

    def regenerate(self, updated: ReconciliationMap, original: Sequence[Annotation]) -> Tuple[Annotation, ...]:
        result: List[Annotation] = []
        matched: Set[ResponseCode] = set()

        for annotation in original:
            if annotation.name != self.annotation_name:
                result.append(annotation)
                continue

            positional = annotation.positional_arguments
            code = parse_status_code(positional[0] if positional else None)
            entry = updated.get(code)
            if entry is None:
                result.append(annotation)
                continue

            result.append(self.rebuild(annotation, entry))
            matched.add(code)

        added = [entry for code, entry in updated.items() if code not in matched]
        result.extend(self.create(entry) for entry in added)

        logger.debug(f"Regenerated {len(matched)} annotation(s), appended {len(added)}")
        return tuple(result)

    def rebuild(self, annotation: Annotation, entry: AnnotationEntry) -> Annotation:
        """Keep code and description, replace the type argument."""
        head = list(annotation.positional_arguments[:2])
        if entry.payload_type is not None and len(head) < 2:
            # The type is positional, so the description slot must be filled
            head.append(string_literal(self.placeholder))

        arguments = head + self._type_argument(entry) + list(annotation.named_arguments)
        return replace(annotation, arguments=tuple(arguments))

    def create(self, entry: AnnotationEntry) -> Annotation:
        arguments = [
            member_access(self.status_enum_name, entry.code.name),
            string_literal(entry.description),
        ]
        arguments += self._type_argument(entry)
        return Annotation(name=self.annotation_name, arguments=tuple(arguments))

    @staticmethod
    def _type_argument(entry: AnnotationEntry) -> List[SyntaxNode]:
        if entry.payload_type is None:
            return []
        return [typeof_expression(entry.payload_type)]
