"""glmdesign: design-matrix preparation for general linear model analyses.

This package turns a table of per-observation covariates (and an optional
data matrix) into a regression-ready design matrix: observation selection,
interaction terms, intercept, contrast vector, normalization and orthogonal
projection of covariates. It does not fit the model.
"""
from __future__ import annotations

from importlib import import_module
from typing import Any

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "ContrastError",
    "CovariateLookupError",
    "GLMDesignError",
    "Interaction",
    "InteractionError",
    "Model",
    "NormalizeAll",
    "NormalizeOptions",
    "NormalizeSubset",
    "Projection",
    "SelectFilter",
    "normalize_model",
]

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "Model": ("glmdesign.core.model", "Model"),
    "NormalizeOptions": ("glmdesign.core.options", "NormalizeOptions"),
    "NormalizeAll": ("glmdesign.core.options", "NormalizeAll"),
    "NormalizeSubset": ("glmdesign.core.options", "NormalizeSubset"),
    "SelectFilter": ("glmdesign.core.options", "SelectFilter"),
    "Interaction": ("glmdesign.core.options", "Interaction"),
    "Projection": ("glmdesign.core.options", "Projection"),
    "normalize_model": ("glmdesign.pipeline", "normalize_model"),
    "GLMDesignError": ("glmdesign.errors", "GLMDesignError"),
    "ConfigError": ("glmdesign.errors", "ConfigError"),
    "CovariateLookupError": ("glmdesign.errors", "CovariateLookupError"),
    "InteractionError": ("glmdesign.errors", "InteractionError"),
    "ContrastError": ("glmdesign.errors", "ContrastError"),
}


def __getattr__(name: str) -> Any:
    """Lazily import public classes and functions on first access."""
    if name in _LAZY_IMPORTS:
        module_name, attr_name = _LAZY_IMPORTS[name]
        module = import_module(module_name)
        attr = getattr(module, attr_name)
        globals()[name] = attr
        return attr
    raise AttributeError(f"module 'glmdesign' has no attribute '{name}'")


def __dir__() -> list[str]:
    """Ensure dir() exposes lazily imported names."""
    return sorted(set(globals()) | set(__all__))
