"""Orthogonal projection of covariate subsets.

For each projection, the ``ortho`` covariates are regressed on the ``space``
covariates by least squares and replaced by the residuals, which makes them
orthogonal to ``space``. The model is normalized again after each
projection, before the next one is applied.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import replace
from typing import TYPE_CHECKING

import numpy as np

from glmdesign.core import linalg as la
from glmdesign.errors import CovariateLookupError
from glmdesign.utils.helpers import label_mask

if TYPE_CHECKING:
    from glmdesign.core.model import Model
    from glmdesign.core.options import Projection

LOGGER = logging.getLogger(__name__)

__all__ = ["project_covariates", "project_once", "resolve_names"]


def resolve_names(labels_y: Sequence[str], names: Sequence[str], *, role: str) -> np.ndarray:
    """Column mask of ``names``; every name must match a covariate."""
    missing = [nm for nm in names if not label_mask(labels_y, [nm]).any()]
    if missing:
        raise CovariateLookupError(
            f"Could not find the covariate(s) {', '.join(missing)} listed in projection.{role}",
        )
    return label_mask(labels_y, names)


def project_once(model: Model, proj: Projection) -> Model:
    """Replace the ``ortho`` covariates by their residuals on ``space``."""
    mask_space = resolve_names(model.labels_y, proj.space, role="space")
    mask_ortho = resolve_names(model.labels_y, proj.ortho, role="ortho")
    if not mask_ortho.any():
        return model
    x_new = model.x.copy()
    x_new[:, mask_ortho] = la.residualize(
        model.x[:, mask_ortho], model.x[:, mask_space],
    )
    LOGGER.debug("Projected %s orthogonal to %s", list(proj.ortho), list(proj.space))
    return replace(model, x=x_new)


def project_covariates(
    model: Model,
    projections: Sequence[Projection],
    renormalize: Callable[[Model], Model],
) -> Model:
    """Apply each projection in order, calling ``renormalize`` after each one."""
    out = model
    for proj in projections:
        out = renormalize(project_once(out, proj))
    return out
