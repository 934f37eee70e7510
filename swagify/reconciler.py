"""
Merge declared responses with the responses a handler actually returns.

Only payload types are synchronized. Descriptions of existing declarations
are author prose and are never rewritten.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, Tuple

from .base import DESCRIPTION_PLACEHOLDER, AnnotationEntry, ReconciliationMap, ReturnSite

logger = logging.getLogger("swagify.reconciler")


def reconcile(
    declared: ReconciliationMap,
    observed: Iterable[ReturnSite],
    placeholder: str = DESCRIPTION_PLACEHOLDER,
) -> Tuple[ReconciliationMap, bool]:
    """
    Fold observed return sites onto the declared entries.

    Args:
        declared: Declared entries, in declaration order
        observed: Return sites, in return statement order
        placeholder: Description given to codes that were never declared

    Returns:
        (updated map, whether it differs from ``declared``)
    """
    updated: ReconciliationMap = dict(declared)

    for site in observed:
        current = updated.get(site.code)
        if current is None:
            updated[site.code] = AnnotationEntry(site.code, placeholder, site.payload_type)
            logger.debug(f"New response {site.code.name} ({site.payload_type})")
        else:
            updated[site.code] = replace(current, payload_type=site.payload_type)

    return updated, is_refactor_required(declared, updated)


def is_refactor_required(original: ReconciliationMap, updated: ReconciliationMap) -> bool:
    """
    True if the updated map adds a code or changes a payload type.

    Description differences never count.
    """
    if len(original) != len(updated):
        return True

    for code, entry in original.items():
        if updated[code].payload_type != entry.payload_type:
            return True

    return False
