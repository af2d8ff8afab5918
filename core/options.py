"""Preparation options and their validation.

:class:`NormalizeOptions` holds every knob of the preparation pipeline with
its documented default. :meth:`NormalizeOptions.from_dict` turns a loosely
typed mapping (for example parsed JSON) into validated options.
"""

# glmdesign/core/options.py
from __future__ import annotations

import numbers
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Union

import numpy as np

from glmdesign.errors import ConfigError, InteractionError
from glmdesign.core.contrast import contrast_fields
from glmdesign.utils.helpers import canonical, unique_sorted

if TYPE_CHECKING:
    from glmdesign.core.model import Model

__all__ = [
    "Interaction",
    "NormalizeAll",
    "NormalizeOptions",
    "NormalizeSubset",
    "NormalizeX",
    "Projection",
    "SelectFilter",
    "normalize_x_from",
]

_OPTION_KEYS = frozenset(
    {
        "select",
        "contrast",
        "projection",
        "flag_intercept",
        "interaction",
        "normalize_x",
        "normalize_y",
        "labels_x",
        "warn_degenerate",
    },
)
_SELECT_KEYS = frozenset({"label", "values", "min", "max"})
_INTERACTION_KEYS = frozenset({"label", "factor", "normalize_before", "flag_normalize_inter"})
_PROJECTION_KEYS = frozenset({"space", "ortho"})


def _check_keys(entry: Mapping[str, Any], allowed: frozenset[str], where: str) -> None:
    unknown = sorted(set(entry) - allowed)
    if unknown:
        raise ConfigError(
            f"Unknown field(s) in {where}: {', '.join(unknown)}. "
            f"Allowed: {', '.join(sorted(allowed))}.",
        )


def _as_entries(value: Any, where: str) -> list[Any]:
    """Accept a single mapping or a sequence of entries."""
    if value is None:
        return []
    if isinstance(value, Mapping):
        return [value]
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        raise ConfigError(f"{where} must be a list of entries.")
    return list(value)


def _as_names(value: Any, where: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, Iterable):
        raise ConfigError(f"{where} must be a list of covariate names.")
    return tuple(str(v) for v in value)


def _as_scalar(value: Any, where: str) -> float | None:
    if value is None:
        return None
    arr = np.asarray(value, dtype=object).reshape(-1)
    if arr.size == 0:
        return None
    if arr.size > 1 or not isinstance(arr[0], numbers.Real) or isinstance(arr[0], bool):
        raise ConfigError(f"{where} must be a single number.")
    return float(arr[0])


@dataclass(frozen=True)
class SelectFilter:
    """Row filter on the values of one covariate label.

    Bounds are strict: a row survives ``min`` only if its value is greater
    than ``min``, and ``max`` only if it is lower than ``max``. A missing
    ``label`` makes the filter a no-op.
    """

    label: str | None = None
    values: tuple[float, ...] = ()
    min: float | None = None
    max: float | None = None

    @classmethod
    def from_dict(cls, entry: Mapping[str, Any]) -> SelectFilter:
        if isinstance(entry, SelectFilter):
            return entry
        if not isinstance(entry, Mapping):
            raise ConfigError("Each select entry must be a mapping.")
        _check_keys(entry, _SELECT_KEYS, "select entry")
        raw_values = entry.get("values")
        values: tuple[float, ...] = ()
        if raw_values is not None:
            try:
                values = tuple(
                    float(v) for v in np.asarray(raw_values, dtype=np.float64).reshape(-1)
                )
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"select.values must be numeric: {exc}") from exc
        label = entry.get("label")
        return cls(
            label=None if label is None else str(label),
            values=values,
            min=_as_scalar(entry.get("min"), "select.min"),
            max=_as_scalar(entry.get("max"), "select.max"),
        )


@dataclass(frozen=True)
class Interaction:
    """Product covariate built from two or more factor columns."""

    label: str
    factor: tuple[str, ...]
    normalize_before: bool = True

    def __post_init__(self) -> None:
        if isinstance(self.factor, str) or len(self.factor) < 2:
            raise InteractionError(
                f"Interaction '{self.label}': factor should be a list of at least 2 "
                "covariate names.",
            )
        object.__setattr__(self, "factor", tuple(str(f) for f in self.factor))
        object.__setattr__(self, "label", str(self.label))
        object.__setattr__(self, "normalize_before", bool(self.normalize_before))

    @classmethod
    def from_dict(cls, entry: Mapping[str, Any]) -> Interaction:
        if isinstance(entry, Interaction):
            return entry
        if not isinstance(entry, Mapping):
            raise ConfigError("Each interaction entry must be a mapping.")
        _check_keys(entry, _INTERACTION_KEYS, "interaction entry")
        if "label" not in entry:
            raise InteractionError("Interaction entry is missing its 'label'.")
        factor = entry.get("factor")
        if isinstance(factor, str) or not isinstance(factor, Iterable):
            raise InteractionError(
                f"Interaction '{entry['label']}': factor should be a list of at "
                "least 2 covariate names.",
            )
        flag = entry.get("normalize_before", entry.get("flag_normalize_inter", True))
        return cls(
            label=str(entry["label"]),
            factor=tuple(str(f) for f in factor),
            normalize_before=bool(flag),
        )


@dataclass(frozen=True)
class Projection:
    """Project the ``ortho`` covariates onto the complement of ``space``."""

    space: tuple[str, ...]
    ortho: tuple[str, ...]

    @classmethod
    def from_dict(cls, entry: Mapping[str, Any]) -> Projection:
        if isinstance(entry, Projection):
            return entry
        if not isinstance(entry, Mapping):
            raise ConfigError("Each projection entry must be a mapping.")
        _check_keys(entry, _PROJECTION_KEYS, "projection entry")
        return cls(
            space=_as_names(entry.get("space"), "projection.space"),
            ortho=_as_names(entry.get("ortho"), "projection.ortho"),
        )


@dataclass(frozen=True)
class NormalizeAll:
    """Z-score every covariate."""


@dataclass(frozen=True)
class NormalizeSubset:
    """Z-score only the named covariates (case-insensitive)."""

    names: frozenset[str] = frozenset()

    def selects(self, label: str) -> bool:
        return canonical(label) in {canonical(nm) for nm in self.names}


NormalizeX = Union[NormalizeAll, NormalizeSubset]


def normalize_x_from(value: Any) -> NormalizeX:
    """Convert a boolean, a mapping or a list of names to a :data:`NormalizeX`."""
    if isinstance(value, (NormalizeAll, NormalizeSubset)):
        return value
    if isinstance(value, (bool, np.bool_)):
        return NormalizeAll() if bool(value) else NormalizeSubset()
    if isinstance(value, Mapping):
        return NormalizeSubset(frozenset(str(k) for k in value))
    if isinstance(value, str):
        return NormalizeSubset(frozenset({value}))
    if isinstance(value, Iterable):
        return NormalizeSubset(frozenset(str(v) for v in value))
    raise ConfigError(
        "normalize_x must be a boolean, a mapping keyed by covariate name, "
        "or a list of covariate names.",
    )


def _contrast_from(value: Any) -> dict[str, float]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError("contrast must be a mapping from covariate name to weight.")
    out: dict[str, float] = {}
    for name, weight in value.items():
        w = _as_scalar(weight, f"contrast.{name}")
        if w is None:
            raise ConfigError(f"contrast.{name} must be a number.")
        out[str(name)] = w
    return out


@dataclass(frozen=True)
class NormalizeOptions:
    """Options of :func:`glmdesign.pipeline.normalize_model`.

    Notes
    -----
    - ``labels_x``: observations to keep, in order. Empty means every
      observation, sorted by label.
    - ``contrast``: the covariates listed here are the only ones kept, in
      this order. With ``flag_intercept`` an ``intercept`` weight of 0 is
      prepended when absent.
    - ``normalize_x``: :class:`NormalizeAll` or :class:`NormalizeSubset`;
      the intercept is never normalized.
    - ``normalize_y``: z-score the data across observations (needs more than
      two observations).
    - ``warn_degenerate``: emit a warning when a normalization is skipped for
      lack of observations instead of skipping silently.

    """

    select: tuple[SelectFilter, ...] = ()
    contrast: Mapping[str, float] = field(default_factory=dict)
    projection: tuple[Projection, ...] = ()
    flag_intercept: bool = True
    interaction: tuple[Interaction, ...] = ()
    normalize_x: NormalizeX = field(default_factory=NormalizeAll)
    normalize_y: bool = False
    labels_x: tuple[str, ...] = ()
    warn_degenerate: bool = False

    def __post_init__(self) -> None:
        # Coerce loosely typed values so direct construction behaves like from_dict.
        object.__setattr__(
            self, "select", tuple(SelectFilter.from_dict(s) for s in self.select),
        )
        object.__setattr__(self, "contrast", _contrast_from(self.contrast))
        object.__setattr__(
            self, "projection", tuple(Projection.from_dict(p) for p in self.projection),
        )
        object.__setattr__(
            self, "interaction", tuple(Interaction.from_dict(i) for i in self.interaction),
        )
        object.__setattr__(self, "normalize_x", normalize_x_from(self.normalize_x))
        object.__setattr__(self, "labels_x", _as_names(self.labels_x, "labels_x"))
        object.__setattr__(self, "flag_intercept", bool(self.flag_intercept))
        object.__setattr__(self, "normalize_y", bool(self.normalize_y))

    @classmethod
    def from_dict(cls, options: Mapping[str, Any] | None = None) -> NormalizeOptions:
        """Validate a mapping of options and fill missing fields with defaults."""
        if options is None:
            return cls()
        if isinstance(options, NormalizeOptions):
            return options
        if not isinstance(options, Mapping):
            raise ConfigError("options must be a mapping.")
        _check_keys(options, _OPTION_KEYS, "options")
        kwargs: dict[str, Any] = {}
        if "select" in options:
            kwargs["select"] = tuple(
                SelectFilter.from_dict(s) for s in _as_entries(options["select"], "select")
            )
        if "interaction" in options:
            kwargs["interaction"] = tuple(
                Interaction.from_dict(i)
                for i in _as_entries(options["interaction"], "interaction")
            )
        if "projection" in options:
            kwargs["projection"] = tuple(
                Projection.from_dict(p)
                for p in _as_entries(options["projection"], "projection")
            )
        for key in ("contrast", "normalize_x", "labels_x"):
            if key in options and options[key] is not None:
                kwargs[key] = options[key]
        for key in ("flag_intercept", "normalize_y", "warn_degenerate"):
            if key in options and options[key] is not None:
                kwargs[key] = bool(options[key])
        return cls(**kwargs)

    def resolved(self, model: Model) -> NormalizeOptions:
        """Options with derived fields filled in for ``model``.

        ``labels_x`` defaults to the sorted unique observation labels and the
        contrast gains the automatic intercept weight.
        """
        labels = self.labels_x or tuple(unique_sorted(model.labels_x))
        names, weights = contrast_fields(self.contrast, flag_intercept=self.flag_intercept)
        return replace(self, labels_x=labels, contrast=dict(zip(names, weights.tolist())))
