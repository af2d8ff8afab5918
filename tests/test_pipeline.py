"""End-to-end preparation scenarios."""

import numpy as np
import pandas as pd
import pytest

from glmdesign import normalize_model
from glmdesign.core import linalg as la
from glmdesign.core.model import Model
from glmdesign.core.options import NormalizeOptions
from glmdesign.errors import (
    ConfigError,
    ContrastError,
    CovariateLookupError,
    InteractionError,
    MissingObservationWarning,
)


def _assert_aligned(model):
    assert len(model.labels_x) == model.x.shape[0]
    if model.has_y:
        assert model.y.shape[0] == len(model.labels_x)
    assert len(model.labels_y) == model.x.shape[1]
    assert model.c.shape == (model.x.shape[1],)


def test_default_options_keep_only_intercept():
    model = {"x": [[1.0], [2.0], [3.0]], "labels_x": ["a", "b", "c"], "labels_y": ["cov"]}
    out = normalize_model(model)
    assert out.labels_y == ["intercept"]
    assert out.x.shape == (3, 1)
    assert np.allclose(out.x, 1.0)
    assert np.allclose(out.c, [0.0])
    assert out.labels_x == ["a", "b", "c"]


def test_select_min_drops_low_rows():
    model = Model.from_arrays(
        x=[[0.0], [2.0], [3.0]], labels_x=["s1", "s2", "s3"], labels_y=["cov"],
    )
    out = normalize_model(model, {"select": [{"label": "cov", "min": 1}], "contrast": {"cov": 1}})
    assert out.labels_x == ["s2", "s3"]
    assert out.labels_y == ["intercept", "cov"]
    assert np.allclose(out.c, [0.0, 1.0])
    # Two rows z-scored with ddof=1
    assert np.allclose(out.x[:, 1], [-np.sqrt(0.5), np.sqrt(0.5)])


def test_interaction_column_in_output(group_model):
    opts = {
        "interaction": [{"label": "inter", "factor": ["age", "score"]}],
        "contrast": {"inter": 1, "age": 0, "score": 0},
        "labels_x": group_model.labels_x,
    }
    out = normalize_model(group_model, opts)
    expected = la.zscore(la.zscore(group_model.x[:, 0]) * la.zscore(group_model.x[:, 2]))
    assert out.labels_y == ["intercept", "inter", "age", "score"]
    # Final normalization of an already z-scored column is a no-op
    assert np.allclose(out.x[:, 1], expected)
    assert np.allclose(out.c, [0.0, 1.0, 0.0, 0.0])


def test_projection_decorrelates(rng):
    n = 30
    cov1 = rng.standard_normal(n)
    cov2 = cov1 + 0.5 * rng.standard_normal(n)
    model = Model.from_arrays(
        x=np.column_stack([cov1, cov2]),
        labels_x=[f"s{i:02d}" for i in range(n)],
        labels_y=["cov1", "cov2"],
    )
    out = normalize_model(
        model,
        {"contrast": {"cov1": 0, "cov2": 1}, "projection": [{"space": ["cov1"], "ortho": ["cov2"]}]},
    )
    c1, c2 = out.x[:, 1], out.x[:, 2]
    assert abs(np.corrcoef(c1, c2)[0, 1]) < 1e-8
    assert np.allclose(c2.mean(), 0.0)
    assert np.allclose(c2.std(ddof=1), 1.0)
    assert np.allclose(out.x[:, 0], 1.0)


def test_missing_contrast_covariate_raises(group_model):
    with pytest.raises(ContrastError, match="missing_cov"):
        normalize_model(group_model, {"contrast": {"missing_cov": 1}})


def test_error_taxonomy(group_model):
    with pytest.raises(ConfigError, match="unique"):
        normalize_model(group_model, {"labels_x": ["sub00", "sub00"]})
    with pytest.raises(InteractionError):
        normalize_model(group_model, {"interaction": [{"label": "i", "factor": ["age", "zzz"]}]})
    with pytest.raises(CovariateLookupError):
        normalize_model(group_model, {"select": [{"label": "zzz", "min": 0}]})
    with pytest.raises(CovariateLookupError):
        normalize_model(
            group_model,
            {"contrast": {"age": 1}, "projection": [{"space": ["sex"], "ortho": ["age"]}]},
        )
    with pytest.raises(ConfigError, match="missing required"):
        normalize_model({"x": [[1.0]], "labels_x": ["a"]})
    with pytest.raises(ConfigError, match="Unknown model field"):
        normalize_model({"x": [[1.0]], "labels_x": ["a"], "labels_y": ["c"], "z": 1})


def test_full_pipeline_invariants(group_model):
    opts = NormalizeOptions.from_dict(
        {
            "labels_x": list(reversed(group_model.labels_x)) + ["ghost"],
            "select": [{"label": "sex", "values": [1]}, {"label": "age", "max": 70}],
            "interaction": [{"label": "age_x_score", "factor": ["Age", "score"], "normalize_before": False}],
            "contrast": {"age_x_score": 1, "age": 0, "score": -1},
            "projection": [{"space": ["age"], "ortho": ["age_x_score", "score"]}],
            "normalize_y": True,
        },
    )
    with pytest.warns(MissingObservationWarning, match="ghost"):
        out = normalize_model(group_model, opts)
    _assert_aligned(out)
    # sex == 1 on even subjects, age < 70 keeps subjects 0..9 → 0, 2, 4, 6, 8 (reversed order)
    assert out.labels_x == ["sub08", "sub06", "sub04", "sub02", "sub00"]
    assert out.labels_y == ["intercept", "age_x_score", "age", "score"]
    assert np.allclose(out.c, [0.0, 1.0, 0.0, -1.0])
    assert np.allclose(out.x[:, 0], 1.0)
    assert np.allclose(out.x[:, 1:].mean(axis=0), 0.0)
    assert np.allclose(out.x[:, 2] @ out.x[:, 1], 0.0, atol=1e-8)
    assert np.allclose(out.x[:, 2] @ out.x[:, 3], 0.0, atol=1e-8)
    assert out.y.shape == (5, 4)
    assert np.allclose(out.y.mean(axis=0), 0.0)
    # Input untouched
    assert group_model.labels_y == ["age", "sex", "score"]
    assert group_model.c is None


def test_no_intercept_and_subset_normalization(group_model):
    out = normalize_model(
        group_model,
        {"flag_intercept": False, "normalize_x": {"age": True}, "contrast": {"sex": 1, "age": 1}},
    )
    assert out.labels_y == ["sex", "age"]
    sex_sorted = group_model.x[:, 1]
    assert np.allclose(out.x[:, 0], sex_sorted)
    assert np.allclose(out.x[:, 1].mean(), 0.0)


def test_single_observation_keeps_raw_values():
    model = Model.from_arrays(x=[[5.0, 7.0]], labels_x=["s1"], labels_y=["age", "sex"])
    out = normalize_model(model, {"contrast": {"age": 1}})
    assert np.allclose(out.x, [[1.0, 5.0]])


def test_return_options(group_model):
    out, opts = normalize_model(group_model, {"contrast": {"age": 1}}, return_options=True)
    assert isinstance(opts, NormalizeOptions)
    assert opts.labels_x == tuple(sorted(group_model.labels_x))
    assert opts.contrast == {"intercept": 0.0, "age": 1.0}
    assert out.labels_y == list(opts.contrast)


def test_from_frame_end_to_end():
    frame = pd.DataFrame(
        {"age": [60.0, 20.0, 40.0, 30.0], "sex": [1.0, 2.0, 1.0, 2.0]},
        index=["s4", "s1", "s3", "s2"],
    )
    out = normalize_model(Model.from_frame(frame), {"contrast": {"age": 1}})
    assert out.labels_x == ["s1", "s2", "s3", "s4"]
    series = out.contrast_series()
    assert list(series.index) == ["intercept", "age"]
    assert series["age"] == 1.0
    assert np.all(np.diff(out.to_frame()["age"].to_numpy()) > 0)


def test_zero_observations_pass_through():
    out = normalize_model(
        {"x": np.empty((0, 2)), "labels_x": [], "labels_y": ["a", "b"]},
        {"contrast": {"a": 1}},
    )
    _assert_aligned(out)
    assert out.x.shape == (0, 2)
    assert out.labels_y == ["intercept", "a"]
    assert np.allclose(out.c, [0.0, 1.0])


def test_non_finite_covariate_is_a_config_error():
    x = np.array([[1.0, np.nan], [2.0, 1.0], [3.0, 2.0]])
    with pytest.raises(ConfigError, match="NaN or Inf"):
        normalize_model(
            {"x": x, "labels_x": ["a", "b", "c"], "labels_y": ["cov", "other"]},
            {"contrast": {"other": 1}},
        )
    model = Model(x=x, labels_x=["a", "b", "c"], labels_y=["cov", "other"])
    with pytest.raises(ConfigError, match="NaN or Inf"):
        normalize_model(model, {"contrast": {"cov": 1}})
