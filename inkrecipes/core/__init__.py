"""
Core Processing Modules
======================

Style normalization, recipe resolution, rendering, dithering, and mixup compositing.
"""
