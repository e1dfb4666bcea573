"""
huepalette Segmentation

Foreground/background separation and semantic labelling with a luminance
fallback when providers are unavailable.
"""
