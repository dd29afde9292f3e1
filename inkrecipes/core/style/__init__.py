"""
Style Normalization
===================

Utility-class resolution for fixed-viewport rendering.
"""

from .normalizer import NormalizeOptions, normalize

__all__ = ["NormalizeOptions", "normalize"]
