"""Normalization of covariates and data.

Covariates are z-scored across observations according to ``normalize_x``.
The intercept is reset to the constant 1 after every pass, whatever was
selected. Normalization is skipped when too few observations remain for a
z-score to be meaningful: one row for a full ``x`` pass, two rows for ``y``.
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import replace
from typing import TYPE_CHECKING

import numpy as np

from glmdesign.core import linalg as la
from glmdesign.core.options import NormalizeAll, NormalizeSubset, normalize_x_from
from glmdesign.errors import DegenerateNormalizationWarning
from glmdesign.utils.auto_constant import clamp_intercept
from glmdesign.utils.helpers import has_label

if TYPE_CHECKING:
    from glmdesign.core.model import Model
    from glmdesign.core.options import NormalizeX

LOGGER = logging.getLogger(__name__)

__all__ = ["normalize_covariates"]

# Fewest observations for which y is normalized.
_MIN_ROWS_Y = 3


def _skip(message: str, *, warn: bool) -> None:
    if warn:
        warnings.warn(message, DegenerateNormalizationWarning, stacklevel=3)
    else:
        LOGGER.debug(message)


def normalize_covariates(
    model: Model,
    normalize_x: NormalizeX | bool = True,
    *,
    normalize_y: bool = False,
    warn_degenerate: bool = False,
) -> Model:
    """Z-score the selected covariates (and optionally the data).

    Parameters
    ----------
    model : Model
        Input model (not modified).
    normalize_x : NormalizeAll | NormalizeSubset | bool
        :class:`NormalizeAll` (or ``True``) normalizes every covariate unless
        there is a single observation. :class:`NormalizeSubset` normalizes
        only the named covariates; names that match no covariate are ignored.
    normalize_y : bool
        Also z-score ``y`` column-wise when it has more than two rows.
    warn_degenerate : bool
        Emit :class:`DegenerateNormalizationWarning` when a pass is skipped.

    """
    mode = normalize_x_from(normalize_x)
    x_new = model.x.copy()
    if isinstance(mode, NormalizeAll):
        if x_new.shape[0] == 1:
            _skip("Covariates not normalized: a single observation", warn=warn_degenerate)
        else:
            x_new = la.zscore(x_new)
    elif isinstance(mode, NormalizeSubset) and mode.names:
        mask = np.fromiter(
            (mode.selects(lab) for lab in model.labels_y), dtype=bool, count=model.n_covariates,
        )
        if mask.any():
            x_new[:, mask] = la.zscore(x_new[:, mask])
        absent = sorted(nm for nm in mode.names if not has_label(model.labels_y, nm))
        if absent:
            LOGGER.debug("Covariates listed in normalize_x but absent: %s", absent)
    clamp_intercept(x_new, model.labels_y)

    y_new = model.y
    if normalize_y and model.has_y:
        if model.y.shape[0] >= _MIN_ROWS_Y:
            y_new = la.zscore(model.y)
        else:
            _skip(
                f"Data not normalized: {model.y.shape[0]} observation(s), need {_MIN_ROWS_Y}",
                warn=warn_degenerate,
            )
    return replace(model, x=x_new, y=y_new)
