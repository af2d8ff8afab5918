from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest


def pytest_configure() -> None:
    """Ensure the directory holding the package is on sys.path.

    The repository root is itself the ``glmdesign`` package. When the
    checkout directory carries that name (and the package is not installed),
    importing ``glmdesign`` needs the parent directory on ``sys.path``.
    """

    repo_root = Path(__file__).resolve().parents[1]
    if repo_root.name != "glmdesign":
        return
    parent_str = str(repo_root.parent)
    if parent_str not in sys.path:
        sys.path.insert(0, parent_str)


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def group_model(rng):
    """Twelve subjects, three covariates and a four-unit data matrix."""
    from glmdesign.core.model import Model

    n = 12
    age = np.arange(20.0, 20.0 + 5.0 * n, 5.0)
    sex = np.tile([1.0, 2.0], n // 2)
    score = rng.standard_normal(n)
    x = np.column_stack([age, sex, score])
    y = rng.standard_normal((n, 4))
    labels_x = [f"sub{i:02d}" for i in range(n)]
    return Model.from_arrays(x=x, labels_x=labels_x, labels_y=["age", "sex", "score"], y=y)
