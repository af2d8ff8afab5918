# glmdesign/core/__init__.py
"""Core preparation stages for glmdesign."""
from . import (
    contrast,
    interaction,
    linalg,
    model,
    normalize,
    options,
    projection,
    selection,
)

__all__ = [
    "contrast",
    "interaction",
    "linalg",
    "model",
    "normalize",
    "options",
    "projection",
    "selection",
]
