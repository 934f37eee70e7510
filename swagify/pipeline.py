"""
Extract → reconcile → regenerate, for one handler method.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .base import ReconciliationMap, ReturnSite
from .config import SwagifyConfig
from .extractor import ResponseExtractor
from .reconciler import reconcile
from .regenerator import AnnotationRegenerator
from .syntax import Annotation, ReturnStatement

logger = logging.getLogger("swagify.pipeline")


@dataclass
class ReconciliationResult:
    """Everything one pipeline pass learned about a method."""
    declared: ReconciliationMap
    observed: List[ReturnSite]
    updated: ReconciliationMap
    changed: bool
    annotations: Optional[Tuple[Annotation, ...]] = None

    @property
    def added(self) -> List[str]:
        return [code.name for code in self.updated if code not in self.declared]

    @property
    def retyped(self) -> List[str]:
        return [
            code.name for code, entry in self.declared.items()
            if self.updated[code].payload_type != entry.payload_type
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "changed": self.changed,
            "added": self.added,
            "retyped": self.retyped,
            "responses": [
                {
                    "code": entry.code.name,
                    "status": int(entry.code),
                    "description": entry.description,
                    "type": entry.payload_type,
                }
                for entry in self.updated.values()
            ],
        }


@dataclass
class SwagifyPipeline:
    """
    Sync a handler's response annotations with its return statements.

    Fatal extraction errors propagate; nothing partial is ever returned.
    """
    config: SwagifyConfig = field(default_factory=SwagifyConfig)

    def __post_init__(self):
        self.extractor = ResponseExtractor(self.config.annotation_name)
        self.regenerator = AnnotationRegenerator(
            annotation_name=self.config.annotation_name,
            status_enum_name=self.config.status_enum_name,
            placeholder=self.config.description_placeholder,
        )

    def reconcile_method(
        self,
        returns: Sequence[ReturnStatement],
        annotations: Sequence[Annotation],
    ) -> ReconciliationResult:
        observed = self.extractor.extract_returns(returns)
        declared = self.extractor.extract_declared(annotations)
        updated, changed = reconcile(declared, observed, self.config.description_placeholder)

        result = ReconciliationResult(declared, observed, updated, changed)
        if changed:
            result.annotations = self.regenerator.regenerate(updated, annotations)
        else:
            logger.debug("Declared responses already match the return statements")
        return result

    def run(
        self,
        returns: Sequence[ReturnStatement],
        annotations: Sequence[Annotation],
    ) -> Optional[Tuple[Annotation, ...]]:
        """
        Returns:
            The replacement attribute lists, or None when no edit is needed
        """
        return self.reconcile_method(returns, annotations).annotations
