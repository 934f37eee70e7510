"""
Refactoring host.

Offers a "Swagify endpoint" code action on controller action methods and
applies the pipeline's output back to the document text.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .base import DEFAULT_HANDLER_SUFFIX, SwagifyError
from .config import SwagifyConfig
from .csharp import annotation_edits, apply_annotations, apply_edits, parse_controller
from .csharp.rewriter import TextEdit
from .pipeline import ReconciliationResult, SwagifyPipeline
from .syntax import HandlerMethod

logger = logging.getLogger("swagify.refactoring")

ACTION_TITLE = "Swagify endpoint"


def is_handler_document(path: str, suffix: str = DEFAULT_HANDLER_SUFFIX) -> bool:
    """True for documents named like a controller, e.g. ``UsersController.cs``."""
    return os.path.basename(path).endswith(suffix)


@dataclass
class CodeAction:
    """A deferred edit for one method of one document."""
    title: str
    provider: "SwagifyRefactoringProvider"
    source: str
    method: HandlerMethod

    def apply(self) -> Optional[str]:
        """New document text, or None when the method is already in sync or cannot be handled."""
        return self.provider.swagify_method(self.source, self.method)


@dataclass
class MethodOutcome:
    """What happened to one method during a document sync."""
    name: str
    line: int
    status: str  # changed, unchanged, failed
    reason: Optional[str] = None
    added: List[str] = field(default_factory=list)
    retyped: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "method": self.name,
            "line": self.line,
            "status": self.status,
            "reason": self.reason,
            "added": self.added,
            "retyped": self.retyped,
        }


@dataclass
class DocumentResult:
    """Outcome of syncing every selected method of one document."""
    path: str
    source: str
    new_source: str
    methods: List[MethodOutcome] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def changed(self) -> bool:
        return self.new_source != self.source

    @property
    def failed(self) -> List[MethodOutcome]:
        return [m for m in self.methods if m.status == "failed"]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "changed": self.changed,
            "error": self.error,
            "methods": [m.to_dict() for m in self.methods],
        }


class SwagifyRefactoringProvider:
    """
    Code action provider for controller documents.

    Extraction failures never escape: the action simply produces no edit and
    the reason is logged.
    """

    def __init__(self, config: Optional[SwagifyConfig] = None):
        self.config = config or SwagifyConfig()
        self.pipeline = SwagifyPipeline(self.config)

    def is_handler_document(self, path: str) -> bool:
        return is_handler_document(path, self.config.handler_suffix)

    @staticmethod
    def find_method(methods: List[HandlerMethod], position: int) -> Optional[HandlerMethod]:
        """The method whose declaration header contains ``position``."""
        for method in methods:
            if method.contains(position):
                return method
        return None

    def compute_refactorings(self, path: str, source: str, position: int) -> List[CodeAction]:
        """
        Code actions available at ``position`` (a character offset).

        Nothing is offered outside handler documents or outside a method
        declaration header.
        """
        if not self.is_handler_document(path):
            return []

        try:
            methods = parse_controller(source)
        except SwagifyError as e:
            logger.warning(f"{path}: {e}")
            return []

        method = self.find_method(methods, position)
        if method is None:
            return []

        return [CodeAction(ACTION_TITLE, self, source, method)]

    def swagify_method(self, source: str, method: HandlerMethod) -> Optional[str]:
        try:
            annotations = self.pipeline.run(method.returns, method.annotations)
        except SwagifyError as e:
            logger.warning(f"{method.name} (line {method.line}): {e}")
            return None

        if annotations is None:
            return None
        return apply_annotations(source, method, annotations)

    def sync_document(
        self,
        path: str,
        source: str,
        methods: Optional[List[str]] = None,
        line: Optional[int] = None,
    ) -> DocumentResult:
        """
        Sync every method of a document, or only the selected ones.

        Args:
            path: Document path, used for reporting
            source: Document text
            methods: Only methods with these names
            line: Only the method whose declaration spans this 1-based line

        Returns:
            DocumentResult with per-method outcomes and the new text
        """
        result = DocumentResult(path=path, source=source, new_source=source)

        try:
            handlers = parse_controller(source)
        except SwagifyError as e:
            logger.warning(f"{path}: {e}")
            result.error = str(e)
            return result

        if methods:
            handlers = [h for h in handlers if h.name in methods]
        if line is not None:
            handlers = [h for h in handlers if self._spans_line(source, h, line)]

        edits: List[TextEdit] = []
        for handler in handlers:
            outcome, method_edits = self._sync_method(source, handler)
            result.methods.append(outcome)
            edits.extend(method_edits)

        if edits:
            result.new_source = apply_edits(source, edits)

        logger.info(
            f"{path}: {len(handlers)} method(s), "
            f"{sum(1 for m in result.methods if m.status == 'changed')} changed, "
            f"{len(result.failed)} failed"
        )
        return result

    def _sync_method(self, source: str, method: HandlerMethod):
        try:
            reconciled: ReconciliationResult = self.pipeline.reconcile_method(method.returns, method.annotations)
        except SwagifyError as e:
            logger.warning(f"{method.name} (line {method.line}): {e}")
            return MethodOutcome(method.name, method.line, "failed", reason=str(e)), []

        if not reconciled.changed:
            return MethodOutcome(method.name, method.line, "unchanged"), []

        outcome = MethodOutcome(
            method.name,
            method.line,
            "changed",
            added=reconciled.added,
            retyped=reconciled.retyped,
        )
        return outcome, annotation_edits(source, method, reconciled.annotations)

    @staticmethod
    def _spans_line(source: str, method: HandlerMethod, line: int) -> bool:
        first = source.count("\n", 0, method.declaration_start) + 1
        last = source.count("\n", 0, method.body_start) + 1
        return first <= line <= last
