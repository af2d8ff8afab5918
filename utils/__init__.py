# glmdesign/utils/__init__.py
"""Utility functions module."""
from .auto_constant import INTERCEPT, add_constant, add_intercept, clamp_intercept
from .helpers import canonical, find_label, has_label, label_mask, unique_sorted

__all__ = [
    "INTERCEPT",
    "add_constant",
    "add_intercept",
    "canonical",
    "clamp_intercept",
    "find_label",
    "has_label",
    "label_mask",
    "unique_sorted",
]
