"""Demonstration of the glmdesign package.

Builds a small simulated group study (subjects with age, sex and a
performance score, plus one data value per region) and prepares the design
matrix for a test of the age-by-score interaction.

Run with ``python -m glmdesign.demo``.
"""

from __future__ import annotations

import logging

import numpy as np
import pandas as pd

from .core.model import Model
from .core.options import NormalizeOptions
from .pipeline import normalize_model

_LOGGER = logging.getLogger(__name__)


def simulate_group_table(n_subjects: int = 40, n_regions: int = 10, seed: int = 0):
    """Simulate a covariate table and a data matrix (subjects x regions)."""
    rng = np.random.default_rng(seed)
    subjects = [f"sub{i:03d}" for i in range(n_subjects)]
    table = pd.DataFrame(
        {
            "age": rng.uniform(20.0, 80.0, n_subjects).round(),
            "sex": rng.integers(1, 3, n_subjects).astype(float),
            "score": rng.standard_normal(n_subjects),
            "motion": np.abs(rng.standard_normal(n_subjects)) * 0.2,
        },
        index=pd.Index(subjects, name="subject"),
    )
    data = rng.standard_normal((n_subjects, n_regions))
    return table, data


def run_demo() -> Model:
    table, data = simulate_group_table()
    model = Model.from_frame(table, y=data)
    opts = NormalizeOptions.from_dict(
        {
            "select": [{"label": "age", "min": 25, "max": 75}],
            "interaction": [{"label": "age_x_score", "factor": ["age", "score"]}],
            "contrast": {"age": 0, "score": 0, "motion": 0, "age_x_score": 1},
            "projection": [{"space": ["motion"], "ortho": ["age", "score"]}],
            "normalize_y": True,
        },
    )
    prepared, resolved = normalize_model(model, opts, return_options=True)
    _LOGGER.info("Observations kept: %d of %d", prepared.n_obs, model.n_obs)
    _LOGGER.info("Resolved contrast: %s", dict(resolved.contrast))
    print(prepared.to_frame().round(3).head())
    print(prepared.contrast_series())
    return prepared


if __name__ == "__main__":  # pragma: no cover
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    run_demo()
