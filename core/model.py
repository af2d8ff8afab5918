"""Model container threaded through the preparation stages.

A :class:`Model` bundles the covariate matrix ``x`` (observations x
covariates), the data matrix ``y`` (observations x units, possibly with zero
columns), one label per observation and one label per covariate. The
contrast vector ``c`` only exists once contrast extraction has run.
"""

# glmdesign/core/model.py
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

import numpy as np
import pandas as pd

from glmdesign.errors import ConfigError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from numpy.typing import NDArray

__all__ = ["Model"]

_NDIM_2D = 2


def _as_matrix(values: Any, name: str) -> np.ndarray:
    try:
        arr = np.asarray(values, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"model.{name} must be numeric: {exc}") from exc
    if arr.ndim == 1:
        arr = arr.reshape(-1, 1)
    if arr.ndim != _NDIM_2D:
        raise ConfigError(f"model.{name} must be 2D (got {arr.ndim} dimensions).")
    return arr


@dataclass
class Model:
    """Design matrix with row and column labels.

    Attributes
    ----------
    x : np.ndarray, shape (n, k)
        Covariates; columns are covariates, rows are observations.
    labels_x : list[str]
        One label per observation. Duplicates are allowed.
    labels_y : list[str]
        One label per covariate (column of ``x``).
    y : np.ndarray, shape (n, m)
        Data matrix. Absent data is stored with ``m == 0``.
    c : np.ndarray | None
        Contrast weight per column of ``x``; set by contrast extraction.

    """

    x: NDArray[np.float64]
    labels_x: list[str]
    labels_y: list[str]
    y: NDArray[np.float64] = field(default_factory=lambda: np.empty((0, 0)))
    c: NDArray[np.float64] | None = None

    @classmethod
    def from_arrays(
        cls,
        x: Any = None,
        labels_x: Sequence[Any] | None = None,
        labels_y: Sequence[Any] | None = None,
        y: Any = None,
    ) -> Model:
        """Build a model, filling the optional ``y`` and checking shapes.

        ``x``, ``labels_x`` and ``labels_y`` have no default and raise
        :class:`ConfigError` when missing.
        """
        missing = [
            nm
            for nm, val in (("x", x), ("labels_x", labels_x), ("labels_y", labels_y))
            if val is None
        ]
        if missing:
            raise ConfigError(f"model is missing required field(s): {', '.join(missing)}")
        lx = [str(v) for v in labels_x]
        ly = [str(v) for v in labels_y]
        xa = _as_matrix(x, "x")
        if xa.size == 0 and not ly:
            xa = np.empty((len(lx), 0), dtype=np.float64)
        if y is None or np.asarray(y).size == 0:
            ya = np.empty((xa.shape[0], 0), dtype=np.float64)
        else:
            ya = _as_matrix(y, "y")
        model = cls(x=xa, labels_x=lx, labels_y=ly, y=ya)
        model.validate()
        return model

    @classmethod
    def from_frame(cls, frame: pd.DataFrame, y: Any = None) -> Model:
        """Build a model from a covariate table.

        The index supplies the observation labels and the columns the
        covariate labels. ``y`` may be an array or a DataFrame aligned
        positionally with ``frame``.
        """
        if not isinstance(frame, pd.DataFrame):
            raise ConfigError("from_frame expects a pandas DataFrame.")
        y_vals = y.to_numpy(dtype=np.float64) if isinstance(y, pd.DataFrame) else y
        return cls.from_arrays(
            x=frame.to_numpy(dtype=np.float64),
            labels_x=[str(v) for v in frame.index],
            labels_y=[str(v) for v in frame.columns],
            y=y_vals,
        )

    @property
    def n_obs(self) -> int:
        return len(self.labels_x)

    @property
    def n_covariates(self) -> int:
        return len(self.labels_y)

    @property
    def has_y(self) -> bool:
        return self.y.shape[1] > 0

    def validate(self) -> None:
        """Check row/column alignment and that every value is finite."""
        if self.x.ndim != _NDIM_2D:
            raise ConfigError("model.x must be 2D.")
        if self.x.shape[0] != len(self.labels_x):
            raise ConfigError(
                f"model.x has {self.x.shape[0]} rows but labels_x has "
                f"{len(self.labels_x)} entries.",
            )
        if self.x.shape[1] != len(self.labels_y):
            raise ConfigError(
                f"model.x has {self.x.shape[1]} columns but labels_y has "
                f"{len(self.labels_y)} entries.",
            )
        if self.has_y and self.y.shape[0] != len(self.labels_x):
            raise ConfigError(
                f"model.y has {self.y.shape[0]} rows but labels_x has "
                f"{len(self.labels_x)} entries.",
            )
        for name, arr in (("x", self.x), ("y", self.y)):
            if not np.all(np.isfinite(arr)):
                raise ConfigError(
                    f"model.{name} contains NaN or Inf; drop or impute those observations first.",
                )
        if self.c is not None and self.c.shape[0] != self.x.shape[1]:
            raise ConfigError(
                f"contrast has {self.c.shape[0]} entries for {self.x.shape[1]} columns.",
            )

    def copy(self) -> Model:
        return replace(
            self,
            x=self.x.copy(),
            y=self.y.copy(),
            labels_x=list(self.labels_x),
            labels_y=list(self.labels_y),
            c=None if self.c is None else self.c.copy(),
        )

    def take_rows(self, rows: Any) -> Model:
        """Return a model restricted to ``rows`` (indices or boolean mask)."""
        idx = np.asarray(rows)
        if idx.dtype == bool:
            idx = np.flatnonzero(idx)
        idx = idx.astype(np.intp).reshape(-1)
        y_new = self.y[idx, :] if self.has_y else np.empty((idx.size, 0))
        return replace(
            self,
            x=self.x[idx, :],
            y=y_new,
            labels_x=[self.labels_x[i] for i in idx],
        )

    def to_frame(self) -> pd.DataFrame:
        """Covariates as a DataFrame indexed by observation label."""
        return pd.DataFrame(
            self.x,
            index=pd.Index(self.labels_x, name="observation"),
            columns=list(self.labels_y),
        )

    def contrast_series(self) -> pd.Series:
        """Contrast weights as a Series indexed by covariate label."""
        if self.c is None:
            raise ValueError("No contrast has been extracted for this model.")
        return pd.Series(self.c, index=list(self.labels_y), name="contrast")

    def __repr__(self) -> str:  # pragma: no cover - convenience only
        return (
            f"Model(n_obs={self.n_obs}, covariates={self.labels_y}, "
            f"n_units={self.y.shape[1]}, contrast={'yes' if self.c is not None else 'no'})"
        )
