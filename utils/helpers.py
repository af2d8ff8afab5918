"""Shared label helpers.

Covariate names are compared case-insensitively everywhere: factor
resolution, intercept detection, contrast extraction, row selection and
projection all go through the helpers below.
"""
from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

import numpy as np

__all__ = [
    "canonical",
    "find_label",
    "has_label",
    "label_mask",
    "unique_sorted",
]


def canonical(label: Any) -> str:
    """Return the case-folded comparison key of a label."""
    return str(label).casefold()


def find_label(labels: Sequence[Any], name: Any) -> list[int]:
    """Return every index of ``labels`` whose label matches ``name``."""
    key = canonical(name)
    return [j for j, lab in enumerate(labels) if canonical(lab) == key]


def has_label(labels: Iterable[Any], name: Any) -> bool:
    key = canonical(name)
    return any(canonical(lab) == key for lab in labels)


def label_mask(labels: Sequence[Any], names: Iterable[Any]) -> np.ndarray:
    """Boolean mask over ``labels`` flagging members of ``names``."""
    keys = {canonical(nm) for nm in names}
    return np.fromiter(
        (canonical(lab) in keys for lab in labels), dtype=bool, count=len(labels),
    )


def unique_sorted(labels: Iterable[Any]) -> list[str]:
    """Sorted unique observation labels (the default reordering list)."""
    return sorted({str(lab) for lab in labels})
