"""Design-matrix preparation pipeline.

:func:`normalize_model` runs the stages in their fixed order:

1. fill option defaults and validate the model;
2. reorder/reduce observations by label, then apply the select filters;
3. append interaction covariates;
4. add the intercept;
5. keep the contrast covariates and build the contrast vector;
6. normalize;
7. apply each projection, normalizing again after each one.

The input model is never modified; the function either returns a fully
consistent model or raises.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from functools import partial
from typing import Any

from glmdesign.core.contrast import extract_contrast
from glmdesign.core.interaction import add_interactions
from glmdesign.core.model import Model
from glmdesign.core.normalize import normalize_covariates
from glmdesign.core.options import NormalizeOptions
from glmdesign.core.projection import project_covariates
from glmdesign.core.selection import reorder_observations, select_observations
from glmdesign.errors import ConfigError
from glmdesign.utils.auto_constant import add_intercept

LOGGER = logging.getLogger(__name__)

__all__ = ["normalize_model"]

_MODEL_KEYS = frozenset({"x", "y", "labels_x", "labels_y"})


def _coerce_model(model: Model | Mapping[str, Any]) -> Model:
    if isinstance(model, Model):
        out = model.copy()
        out.c = None
        out.validate()
        return out
    if isinstance(model, Mapping):
        unknown = sorted(set(model) - _MODEL_KEYS)
        if unknown:
            raise ConfigError(f"Unknown model field(s): {', '.join(unknown)}")
        return Model.from_arrays(
            x=model.get("x"),
            labels_x=model.get("labels_x"),
            labels_y=model.get("labels_y"),
            y=model.get("y"),
        )
    raise ConfigError("model must be a Model or a mapping with x, y, labels_x, labels_y.")


def _checked(model: Model, stage: str) -> Model:
    model.validate()
    LOGGER.debug(
        "%s: %d observations x %d covariates %s",
        stage,
        model.n_obs,
        model.n_covariates,
        model.labels_y,
    )
    return model


def normalize_model(
    model: Model | Mapping[str, Any],
    options: NormalizeOptions | Mapping[str, Any] | None = None,
    *,
    return_options: bool = False,
) -> Model | tuple[Model, NormalizeOptions]:
    """Prepare a model for regression analysis.

    Parameters
    ----------
    model : Model or mapping
        Covariates ``x`` (observations x covariates), optional data ``y``
        (observations x units), ``labels_x`` (one per observation) and
        ``labels_y`` (one per covariate).
    options : NormalizeOptions or mapping, optional
        Preparation options; missing fields take their documented defaults.
    return_options : bool, default False
        Also return the options completed for this model (derived
        ``labels_x`` and the automatic intercept contrast weight).

    Returns
    -------
    Model
        Prepared model whose ``c`` holds the contrast weight of each
        covariate, in column order. With ``return_options`` a
        ``(model, options)`` tuple is returned.

    Raises
    ------
    ConfigError
        Malformed options or model, duplicate labels in ``options.labels_x``.
    CovariateLookupError
        A select or projection name matches no covariate.
    InteractionError
        Malformed interaction or ambiguous factor.
    ContrastError
        A contrast name matches no covariate.

    """
    opts = NormalizeOptions.from_dict(options)
    work = _checked(_coerce_model(model), "input")
    opts = opts.resolved(work)

    work = _checked(reorder_observations(work, opts.labels_x), "reorder")
    work = _checked(select_observations(work, opts.select), "select")
    work = _checked(add_interactions(work, opts.interaction), "interaction")
    if opts.flag_intercept:
        work = _checked(add_intercept(work), "intercept")
    work = _checked(
        extract_contrast(work, opts.contrast, flag_intercept=opts.flag_intercept),
        "contrast",
    )

    renormalize = partial(
        normalize_covariates,
        normalize_x=opts.normalize_x,
        normalize_y=opts.normalize_y,
        warn_degenerate=opts.warn_degenerate,
    )
    work = _checked(renormalize(work), "normalize")
    work = _checked(project_covariates(work, opts.projection, renormalize), "projection")

    if return_options:
        return work, opts
    return work
