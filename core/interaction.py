"""Interaction covariates.

An interaction term is the elementwise product of two or more factor
covariates. By default each factor is z-scored before the product is taken
and the product itself is z-scored afterwards.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import replace
from typing import TYPE_CHECKING

import numpy as np

from glmdesign.core import linalg as la
from glmdesign.errors import InteractionError
from glmdesign.utils.helpers import find_label

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from glmdesign.core.model import Model
    from glmdesign.core.options import Interaction

LOGGER = logging.getLogger(__name__)

__all__ = ["add_interactions", "interaction_column", "resolve_factor"]


def resolve_factor(labels_y: Sequence[str], factor: str) -> int:
    """Index of the single column named ``factor`` (case-insensitive)."""
    idx = find_label(labels_y, factor)
    if not idx:
        raise InteractionError(
            f"Attempt to define an interaction term using the label {factor}, "
            "which is not associated with any covariate",
        )
    if len(idx) > 1:
        raise InteractionError(
            f"Attempt to define an interaction term using the label {factor}, "
            "which is associated with more than one covariate",
        )
    return idx[0]


def interaction_column(model: Model, term: Interaction) -> NDArray[np.float64]:
    """Build the product column of ``term`` from the columns of ``model``."""
    if len(term.factor) < 2:
        raise InteractionError(
            f"Interaction '{term.label}': factor should be a list of at least 2 "
            "covariate names.",
        )
    col: NDArray[np.float64] | None = None
    for name in term.factor:
        fac = model.x[:, resolve_factor(model.labels_y, name)]
        if term.normalize_before:
            fac = la.zscore(fac)
        col = fac.copy() if col is None else la.hadamard(col, fac)
    if term.normalize_before:
        col = la.zscore(col)
    return col


def add_interactions(model: Model, terms: Sequence[Interaction]) -> Model:
    """Append one interaction column per term, in order.

    Terms are added one at a time, so a later term may use an earlier
    interaction as a factor.
    """
    out = model
    for term in terms:
        col = interaction_column(out, term)
        out = replace(
            out,
            x=la.column_stack([out.x, col]),
            labels_y=[*out.labels_y, term.label],
        )
        LOGGER.debug("Added interaction covariate %s = %s", term.label, " * ".join(term.factor))
    return out
