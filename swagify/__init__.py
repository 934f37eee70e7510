"""
Swagify: keep [SwaggerResponse] annotations in sync with a controller action's
return statements.

Pipeline: Extractor → Reconciler → Regenerator, fed by the C# syntax service
in ``swagify.csharp`` and driven by the refactoring host in
``swagify.refactoring``.
"""

from .base import (
    DESCRIPTION_PLACEHOLDER,
    SwagifyError,
    UnrecognizedResponseForm,
    UnparseableStatusCode,
    SourceParseError,
    ResponseCode,
    AnnotationEntry,
    ReturnSite,
    ReconciliationMap,
)
from .syntax import (
    NodeKind,
    SyntaxNode,
    ReturnStatement,
    Annotation,
    HandlerMethod,
)
from .config import SwagifyConfig
from .extractor import ResponseExtractor, find_payload_type, parse_status_code
from .reconciler import reconcile, is_refactor_required
from .regenerator import AnnotationRegenerator
from .pipeline import ReconciliationResult, SwagifyPipeline
from .refactoring import (
    CodeAction,
    DocumentResult,
    MethodOutcome,
    SwagifyRefactoringProvider,
    is_handler_document,
)

__all__ = [
    # Data models
    "DESCRIPTION_PLACEHOLDER",
    "ResponseCode",
    "AnnotationEntry",
    "ReturnSite",
    "ReconciliationMap",
    "NodeKind",
    "SyntaxNode",
    "ReturnStatement",
    "Annotation",
    "HandlerMethod",
    # Errors
    "SwagifyError",
    "UnrecognizedResponseForm",
    "UnparseableStatusCode",
    "SourceParseError",
    # Pipeline
    "SwagifyConfig",
    "ResponseExtractor",
    "find_payload_type",
    "parse_status_code",
    "reconcile",
    "is_refactor_required",
    "AnnotationRegenerator",
    "ReconciliationResult",
    "SwagifyPipeline",
    # Host
    "CodeAction",
    "DocumentResult",
    "MethodOutcome",
    "SwagifyRefactoringProvider",
    "is_handler_document",
]
