"""
Render attribute lists back to C# and splice them into a document.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence

from ..syntax import Annotation, HandlerMethod


@dataclass(frozen=True)
class TextEdit:
    """Replace ``source[start:end]`` with ``text``."""
    start: int
    end: int
    text: str


def render_annotation(annotation: Annotation) -> str:
    """``[target: Name(arg, ...), Trailing]``, without parentheses when there are no arguments."""
    attribute = annotation.name
    if annotation.arguments:
        attribute += "(" + ", ".join(arg.text for arg in annotation.arguments) + ")"

    prefix = f"{annotation.target}: " if annotation.target else ""
    return "[" + prefix + ", ".join([attribute, *annotation.trailing]) + "]"


def detect_newline(source: str) -> str:
    return "\r\n" if "\r\n" in source else "\n"


def annotation_edits(source: str, method: HandlerMethod, annotations: Sequence[Annotation]) -> List[TextEdit]:
    """
    Edits turning ``method.annotations`` into ``annotations``.

    The first ``len(method.annotations)`` entries of ``annotations`` line up
    with the originals; only the ones that differ are rewritten. The rest are
    inserted on their own lines after the last original attribute list, or
    before the method header when it has none.
    """
    originals = method.annotations
    if len(annotations) < len(originals):
        raise ValueError(f"{method.name}: replacement has fewer attribute lists than the original")

    edits: List[TextEdit] = []
    for old, new in zip(originals, annotations):
        if new != old and old.span is not None:
            edits.append(TextEdit(old.span[0], old.span[1], render_annotation(new)))

    appended = [render_annotation(a) for a in annotations[len(originals):]]
    if appended:
        newline = detect_newline(source)
        anchor = originals[-1].span if originals else None
        if anchor is not None:
            text = "".join(newline + method.indent + rendered for rendered in appended)
            edits.append(TextEdit(anchor[1], anchor[1], text))
        else:
            text = "".join(rendered + newline + method.indent for rendered in appended)
            edits.append(TextEdit(method.declaration_start, method.declaration_start, text))

    return edits


def apply_edits(source: str, edits: Iterable[TextEdit]) -> str:
    """Apply non-overlapping edits, back to front so offsets stay valid."""
    result = source
    for edit in sorted(edits, key=lambda e: (e.start, e.end), reverse=True):
        result = result[:edit.start] + edit.text + result[edit.end:]
    return result


def apply_annotations(source: str, method: HandlerMethod, annotations: Sequence[Annotation]) -> str:
    """New document text with ``method``'s attribute lists replaced by ``annotations``."""
    return apply_edits(source, annotation_edits(source, method, annotations))
