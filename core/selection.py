"""Observation reordering and value-based row selection."""

from __future__ import annotations

import logging
import warnings
from collections.abc import Sequence
from typing import TYPE_CHECKING

import numpy as np

from glmdesign.errors import ConfigError, CovariateLookupError, MissingObservationWarning
from glmdesign.utils.helpers import find_label, unique_sorted

if TYPE_CHECKING:
    from glmdesign.core.model import Model
    from glmdesign.core.options import SelectFilter

LOGGER = logging.getLogger(__name__)

__all__ = ["reorder_observations", "select_mask", "select_observations"]


def reorder_observations(model: Model, labels: Sequence[str] | None = None) -> Model:
    """Reorder (and reduce) the observations of ``model`` by label.

    For each entry of ``labels`` in turn, every observation carrying that
    label is appended, keeping the original relative order of observations
    that share a label. Observations whose label is not requested are
    dropped. Requested labels that match no observation are reported with a
    :class:`MissingObservationWarning` and contribute nothing.

    Parameters
    ----------
    model : Model
        Input model (not modified).
    labels : sequence of str, optional
        Unique observation labels. Defaults to the sorted unique labels of
        ``model``, which keeps every observation.

    """
    requested = [str(v) for v in labels] if labels else unique_sorted(model.labels_x)
    if len(set(requested)) != len(requested):
        raise ConfigError("The observation labels requested in labels_x should be unique.")

    positions: dict[str, list[int]] = {}
    for i, lab in enumerate(model.labels_x):
        positions.setdefault(lab, []).append(i)

    order: list[int] = []
    for lab in requested:
        rows = positions.get(lab)
        if rows is None:
            warnings.warn(
                f"The following specified observation was not found in the model: {lab}",
                MissingObservationWarning,
                stacklevel=2,
            )
            continue
        order.extend(rows)
    LOGGER.debug(
        "Reordered observations: kept %d of %d rows for %d labels",
        len(order),
        model.n_obs,
        len(requested),
    )
    return model.take_rows(np.asarray(order, dtype=np.intp))


def select_mask(model: Model, flt: SelectFilter) -> np.ndarray:
    """Boolean row mask of a single select filter.

    Every column matching ``flt.label`` must satisfy every condition:
    membership in ``values`` (when given) and the strict bounds
    ``value > min`` and ``value < max`` (when given).
    """
    mask = np.ones(model.n_obs, dtype=bool)
    if flt.label is None:
        return mask
    cols = find_label(model.labels_y, flt.label)
    if not cols:
        raise CovariateLookupError(
            f"Could not find the covariate {flt.label} used for selection.",
        )
    block = model.x[:, cols]
    if flt.values:
        mask &= np.all(np.isin(block, np.asarray(flt.values, dtype=np.float64)), axis=1)
    if flt.min is not None:
        mask &= np.all(block > flt.min, axis=1)
    if flt.max is not None:
        mask &= np.all(block < flt.max, axis=1)
    return mask


def select_observations(model: Model, filters: Sequence[SelectFilter]) -> Model:
    """Apply select filters one after the other.

    Each filter is evaluated on the rows left by the previous ones, so the
    result is the intersection of all filters. Filters without a label are
    skipped.
    """
    out = model
    for num, flt in enumerate(filters):
        if flt.label is None:
            LOGGER.debug("Select entry %d has no label; skipped", num)
            continue
        mask = select_mask(out, flt)
        LOGGER.debug(
            "Select on %s kept %d of %d rows", flt.label, int(mask.sum()), out.n_obs,
        )
        out = out.take_rows(mask)
    return out
