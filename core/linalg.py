"""Linear algebra routines for design-matrix preparation.

This module provides the two numerical primitives the preparation stages rely
on: column-wise z-scoring and least-squares residualization. Least squares is
solved with column-pivoted QR and the Stata rank tolerance, so rank-deficient regressor sets still yield
well-defined residuals.
Explicit matrix inversion is avoided.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import numpy as np
import scipy.linalg as sla

if TYPE_CHECKING:
    from collections.abc import Sequence

    from numpy.typing import NDArray
else:
    Sequence = tuple  # type: ignore[assignment]
    NDArray = np.ndarray  # type: ignore[misc,assignment]

__all__ = [
    "col_mean",
    "col_std",
    "column_stack",
    "hadamard",
    "lse",
    "residualize",
    "to_dense",
    "zscore",
]

# Matrix type alias
Matrix = Any

_NDIM_2D = 2


def _check_array_finiteness(arr: NDArray[np.float64]) -> None:
    """Helper to validate array finiteness with clear error message."""
    if not np.all(np.isfinite(arr)):
        raise ValueError(
            "Input contains NA/NaN/Inf; please drop/clean rows before normalizing.",
        )


def _assert_all_finite(*arrays: NDArray[np.float64] | None) -> None:
    """Raise ValueError if any input contains NaN or Inf."""
    for a in arrays:
        if a is None:
            continue
        _check_array_finiteness(np.asarray(a))


def to_dense(A: Matrix) -> NDArray[np.float64]:
    """Convert a matrix-like object to a dense float64 numpy array."""
    return np.asarray(A, dtype=np.float64)


def _as_2d(A: Matrix) -> NDArray[np.float64]:
    Ad = to_dense(A)
    if Ad.ndim == 1:
        return Ad.reshape(-1, 1)
    if Ad.ndim != _NDIM_2D:
        raise ValueError(f"Expected a 1D or 2D array, got {Ad.ndim} dimensions.")
    return Ad


def column_stack(cols: Sequence[Matrix]) -> NDArray[np.float64]:
    """Column-wise stack that returns a dense float64 ndarray.

    Small wrapper centralizing column stacking so that stage modules do not
    call numpy directly for shape juggling.
    """
    return np.column_stack([to_dense(c) for c in cols]).astype(np.float64)


def hadamard(A: Matrix, B: Matrix) -> NDArray[np.float64]:
    """Elementwise product of two conformable arrays."""
    return np.asarray(A, dtype=np.float64) * np.asarray(B, dtype=np.float64)


# ---------------------------------------------------------------------
# Column statistics
# ---------------------------------------------------------------------


def col_mean(X: Matrix) -> NDArray[np.float64]:
    """Column means; shape (p,). Zero-row input yields NaN means."""
    Xd = _as_2d(X)
    if Xd.shape[0] == 0:
        return np.full(Xd.shape[1], np.nan, dtype=np.float64)
    return np.mean(Xd, axis=0).astype(np.float64)


def col_std(X: Matrix, *, ddof: int = 1) -> NDArray[np.float64]:
    """Column standard deviations.

    With fewer than ``ddof + 1`` rows the standard deviation is undefined and
    reported as 0 (the caller treats it like a constant column).
    """
    Xd = _as_2d(X)
    n, k = Xd.shape
    if n <= ddof:
        return np.zeros(k, dtype=np.float64)
    return np.std(Xd, axis=0, ddof=ddof).astype(np.float64)


def zscore(X: Matrix, *, ddof: int = 1) -> NDArray[np.float64]:
    """Normalize each column to zero mean and unit variance.

    Parameters
    ----------
    X : array-like, shape (n,) or (n, k)
        Observations in rows.
    ddof : int, default 1
        Delta degrees of freedom of the standard deviation (sample variance).

    Returns
    -------
    ndarray
        Array of the same shape as ``X``.

    Notes
    -----
    Columns whose standard deviation is zero or undefined are only centred
    (divided by 1), so constant columns become zeros rather than NaN. A
    zero-row input is returned unchanged and a one-row input yields zeros.

    """
    Xd = to_dense(X)
    was_1d = Xd.ndim == 1
    X2 = _as_2d(Xd).copy()
    if X2.shape[0] == 0 or X2.shape[1] == 0:
        return X2.reshape(Xd.shape)
    _assert_all_finite(X2)
    mu = col_mean(X2)
    sd = col_std(X2, ddof=ddof)
    sd = np.where((sd > 0.0) & np.isfinite(sd), sd, 1.0)
    out = (X2 - mu) / sd
    return out.reshape(-1) if was_1d else out


# ---------------------------------------------------------------------
# Least squares
# ---------------------------------------------------------------------


def _rank_from_diag(diagR: NDArray[np.float64]) -> int:
    """Numerical rank from the diagonal of R."""
    d = np.abs(np.asarray(diagR, dtype=float).reshape(-1))
    if d.size == 0:
        return 0
    # Stata (Mata qrsolve) default tolerance: eta = 1e-13 * trace(|R|)/rows(R)
    tol = 1e-13 * (float(np.sum(d)) / float(d.size))
    return int(np.sum(d > tol))


def _qr_ls_solve(Ad: NDArray[np.float64], Bd: NDArray[np.float64]) -> NDArray[np.float64]:
    """Solve least squares via pivoted QR; dropped coefficients are zero."""
    out = np.zeros((Ad.shape[1], Bd.shape[1]), dtype=np.float64)
    if Ad.shape[0] == 0 or Ad.shape[1] == 0:
        return out
    Q, R, P = sla.qr(Ad, mode="economic", pivoting=True)
    r = _rank_from_diag(np.diag(R))
    if r > 0:
        QtB = Q.T @ Bd
        out[P[:r], :] = sla.solve_triangular(R[:r, :r], QtB[:r, :], lower=False)
    return out


def lse(y: Matrix, x: Matrix) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Least-squares fit of ``y`` on ``x``.

    Parameters
    ----------
    y : array-like, shape (n, m)
        Dependent columns.
    x : array-like, shape (n, p)
        Regressor columns. ``p`` may be 0.

    Returns
    -------
    beta : ndarray, shape (p, m)
        Coefficients (zero for columns dropped as collinear).
    residual : ndarray, shape (n, m)
        ``y - x @ beta``. With no regressors this equals ``y``.

    """
    yd = _as_2d(y)
    xd = _as_2d(x)
    if xd.shape[0] != yd.shape[0]:
        raise ValueError(
            f"lse: y has {yd.shape[0]} rows but x has {xd.shape[0]} rows.",
        )
    _assert_all_finite(xd, yd)
    beta = _qr_ls_solve(xd, yd)
    if xd.shape[1] == 0:
        return beta, yd.copy()
    return beta, yd - xd @ beta


def residualize(y: Matrix, x: Matrix) -> NDArray[np.float64]:
    """Return only the residual of :func:`lse`."""
    return lse(y, x)[1]
