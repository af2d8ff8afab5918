"""Intercept column handling.

The intercept is the covariate labelled ``intercept`` (any case). It is
placed in front of the other covariates and is held at the constant 1 by
every normalization pass.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

import numpy as np

from glmdesign.utils.helpers import find_label, label_mask

if TYPE_CHECKING:
    from collections.abc import Sequence

    from glmdesign.core.model import Model

__all__ = ["INTERCEPT", "add_constant", "add_intercept", "clamp_intercept"]

LOGGER = logging.getLogger(__name__)

INTERCEPT = "intercept"

# Constants
_NDIM_2D = 2


def _make_intercept_col(n: int) -> np.ndarray:
    """Build intercept column (a column of ones)."""
    return np.ones((n, 1), dtype=np.float64)


def add_constant(
    X: np.ndarray,
    var_names: Sequence[str],
    *,
    n_obs: int | None = None,
    const_name: str = INTERCEPT,
) -> tuple[np.ndarray, list[str], str]:
    """Add intercept column in front of ``X``.

    Parameters
    ----------
    X : np.ndarray, shape (n, k)
        Design matrix. May have zero columns.
    var_names : Sequence[str]
        Variable names, one per column of ``X``.
    n_obs : int | None
        Number of observations; used when ``X`` is empty and carries no
        row count. Defaults to ``X.shape[0]``.
    const_name : str
        Intercept name.

    Returns
    -------
    X_out : np.ndarray
        Matrix with intercept
    names_out : list[str]
        Variable names with intercept
    const_name_out : str
        Intercept name used (the existing spelling when already present)

    Notes
    -----
    When a column already carries the intercept name it is not duplicated:
    that column is reset to ones and left in place.

    """
    X = np.asarray(X, dtype=np.float64)
    if X.ndim != _NDIM_2D:
        msg = "X must be 2D."
        raise ValueError(msg)
    names = [str(nm) for nm in var_names]
    if len(names) != X.shape[1]:
        msg = f"var_names length ({len(names)}) does not match X columns ({X.shape[1]})."
        raise ValueError(msg)
    n = X.shape[0] if n_obs is None else int(n_obs)

    if X.shape[1] == 0:
        return _make_intercept_col(n), [const_name], const_name

    existing = find_label(names, const_name)
    if existing:
        LOGGER.debug("Intercept column already present at %s; reset to ones", existing)
        Xo = X.copy()
        Xo[:, existing] = 1.0
        return Xo, names, names[existing[0]]

    return np.hstack([_make_intercept_col(n), X]), [const_name, *names], const_name


def add_intercept(model: Model) -> Model:
    """Return ``model`` with a constant ``intercept`` covariate."""
    x_new, names, _ = add_constant(model.x, model.labels_y, n_obs=model.n_obs)
    return replace(model, x=x_new, labels_y=names)


def clamp_intercept(X: np.ndarray, var_names: Sequence[str]) -> np.ndarray:
    """Force every intercept column of ``X`` back to 1, in place."""
    mask = label_mask(var_names, [INTERCEPT])
    if mask.any():
        X[:, mask] = 1.0
    return X
