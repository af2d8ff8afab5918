"""Exception and warning types.

Every error derives from :class:`GLMDesignError` and from the built-in family
it specializes (``ValueError`` or ``LookupError``), so callers may catch
either.
"""

from __future__ import annotations

__all__ = [
    "ConfigError",
    "ContrastError",
    "CovariateLookupError",
    "DegenerateNormalizationWarning",
    "GLMDesignError",
    "InteractionError",
    "MissingObservationWarning",
]


class GLMDesignError(Exception):
    """Base class for design-matrix preparation failures."""


class ConfigError(GLMDesignError, ValueError):
    """Malformed options or model fields."""


class CovariateLookupError(GLMDesignError, LookupError):
    """A referenced covariate name does not match any column."""


class InteractionError(GLMDesignError, ValueError):
    """Malformed interaction term or ambiguous factor name."""


class ContrastError(CovariateLookupError):
    """A contrast name cannot be resolved to exactly one column."""


class MissingObservationWarning(UserWarning):
    """A requested observation label is absent from the model."""


class DegenerateNormalizationWarning(RuntimeWarning):
    """Normalization skipped because too few observations remain."""
