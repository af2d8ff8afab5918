import numpy as np
import pytest

from glmdesign.core.model import Model
from glmdesign.core.options import (
    Interaction,
    NormalizeAll,
    NormalizeOptions,
    NormalizeSubset,
    Projection,
    SelectFilter,
    normalize_x_from,
)
from glmdesign.errors import ConfigError, InteractionError


def test_defaults():
    opts = NormalizeOptions.from_dict(None)
    assert opts.select == ()
    assert opts.contrast == {}
    assert opts.projection == ()
    assert opts.flag_intercept is True
    assert opts.interaction == ()
    assert isinstance(opts.normalize_x, NormalizeAll)
    assert opts.normalize_y is False
    assert opts.labels_x == ()
    assert opts.warn_degenerate is False
    assert NormalizeOptions.from_dict({}) == NormalizeOptions()


def test_unknown_option_rejected():
    with pytest.raises(ConfigError, match="Unknown field"):
        NormalizeOptions.from_dict({"constrast": {"age": 1}})


def test_entries_are_parsed():
    opts = NormalizeOptions.from_dict(
        {
            "select": {"label": "age", "values": 3, "min": [10], "max": 90},
            "interaction": [{"label": "ixs", "factor": ["age", "sex"], "flag_normalize_inter": False}],
            "projection": [{"space": "sex", "ortho": ["age"]}],
            "contrast": {"age": 1, "sex": -1.5},
            "labels_x": ["s2", "s1"],
        },
    )
    assert opts.select == (SelectFilter(label="age", values=(3.0,), min=10.0, max=90.0),)
    assert opts.interaction == (Interaction(label="ixs", factor=("age", "sex"), normalize_before=False),)
    assert opts.projection == (Projection(space=("sex",), ortho=("age",)),)
    assert opts.contrast == {"age": 1.0, "sex": -1.5}
    assert opts.labels_x == ("s2", "s1")


def test_select_entry_without_label_is_kept_as_noop():
    flt = SelectFilter.from_dict({"values": [1, 2]})
    assert flt.label is None
    assert flt.values == (1.0, 2.0)


def test_select_rejects_unknown_keys_and_bad_bounds():
    with pytest.raises(ConfigError, match="select entry"):
        SelectFilter.from_dict({"label": "age", "minimum": 3})
    with pytest.raises(ConfigError, match="select.min"):
        SelectFilter.from_dict({"label": "age", "min": [1, 2]})
    with pytest.raises(ConfigError, match="select.values"):
        SelectFilter.from_dict({"label": "age", "values": ["young"]})


@pytest.mark.parametrize("factor", ["age", ["age"], None])
def test_interaction_needs_two_factors(factor):
    with pytest.raises(InteractionError, match="at least 2"):
        Interaction.from_dict({"label": "bad", "factor": factor})


def test_interaction_needs_label():
    with pytest.raises(InteractionError, match="label"):
        Interaction.from_dict({"factor": ["a", "b"]})


def test_interaction_direct_construction_coerces():
    term = Interaction(label="ab", factor=["a", "b"])
    assert term.factor == ("a", "b")
    assert term.normalize_before is True


def test_normalize_x_variants():
    assert normalize_x_from(True) == NormalizeAll()
    assert normalize_x_from(np.bool_(True)) == NormalizeAll()
    assert normalize_x_from(False) == NormalizeSubset()
    assert normalize_x_from({"age": True, "sex": 0}) == NormalizeSubset(frozenset({"age", "sex"}))
    assert normalize_x_from(["age"]) == NormalizeSubset(frozenset({"age"}))
    assert normalize_x_from("age") == NormalizeSubset(frozenset({"age"}))
    with pytest.raises(ConfigError, match="normalize_x"):
        normalize_x_from(3)


def test_normalize_subset_matching_is_case_insensitive():
    subset = NormalizeSubset(frozenset({"Age"}))
    assert subset.selects("AGE")
    assert not subset.selects("sex")


def test_contrast_must_be_numeric():
    with pytest.raises(ConfigError, match="contrast.age"):
        NormalizeOptions(contrast={"age": "high"})
    with pytest.raises(ConfigError, match="mapping"):
        NormalizeOptions.from_dict({"contrast": ["age"]})


def test_resolved_fills_labels_and_intercept_weight():
    model = Model.from_arrays(x=[[1.0], [2.0], [3.0]], labels_x=["c", "a", "c"], labels_y=["age"])
    opts = NormalizeOptions(contrast={"age": 1.0}).resolved(model)
    assert opts.labels_x == ("a", "c")
    assert list(opts.contrast) == ["intercept", "age"]
    assert opts.contrast["intercept"] == 0.0

    explicit = NormalizeOptions(contrast={"age": 1.0, "Intercept": 2.0}).resolved(model)
    assert explicit.contrast == {"age": 1.0, "Intercept": 2.0}

    no_intercept = NormalizeOptions(contrast={"age": 1.0}, flag_intercept=False).resolved(model)
    assert no_intercept.contrast == {"age": 1.0}

    kept = NormalizeOptions(labels_x=["c"]).resolved(model)
    assert kept.labels_x == ("c",)
