"""Contrast vector construction and covariate extraction."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import replace
from typing import TYPE_CHECKING

import numpy as np

from glmdesign.errors import ContrastError
from glmdesign.utils.auto_constant import INTERCEPT
from glmdesign.utils.helpers import find_label, has_label

if TYPE_CHECKING:
    from glmdesign.core.model import Model

LOGGER = logging.getLogger(__name__)

__all__ = ["contrast_fields", "extract_contrast"]


def contrast_fields(
    contrast: Mapping[str, float], *, flag_intercept: bool = True,
) -> tuple[list[str], np.ndarray]:
    """Ordered contrast names and weights.

    With ``flag_intercept`` the intercept is prepended with weight 0 unless
    the contrast already names it.
    """
    names = [str(nm) for nm in contrast]
    weights = [float(contrast[nm]) for nm in contrast]
    if flag_intercept and not has_label(names, INTERCEPT):
        names.insert(0, INTERCEPT)
        weights.insert(0, 0.0)
    return names, np.asarray(weights, dtype=np.float64)


def extract_contrast(
    model: Model, contrast: Mapping[str, float], *, flag_intercept: bool = True,
) -> Model:
    """Keep only the covariates named in ``contrast`` and set ``model.c``.

    The output columns follow the contrast order and take the contrast names
    as labels. Covariates absent from the contrast are dropped.

    Raises
    ------
    ContrastError
        If a contrast name matches no covariate or more than one, or two
        names (compared case-insensitively) select the same covariate.

    """
    names, weights = contrast_fields(contrast, flag_intercept=flag_intercept)
    cols: list[int] = []
    for name in names:
        idx = find_label(model.labels_y, name)
        if not idx:
            raise ContrastError(f"Could not find the covariate {name} listed in the contrast")
        if len(idx) > 1:
            raise ContrastError(
                f"The covariate {name} listed in the contrast matches more than one column",
            )
        if idx[0] in cols:
            raise ContrastError(
                f"The covariate {name} is listed more than once in the contrast",
            )
        cols.append(idx[0])
    kept = set(cols)
    dropped = [lab for j, lab in enumerate(model.labels_y) if j not in kept]
    if dropped:
        LOGGER.debug("Covariates not in the contrast are dropped: %s", dropped)
    x_new = model.x[:, np.asarray(cols, dtype=np.intp)]
    return replace(model, x=x_new, labels_y=names, c=weights)
