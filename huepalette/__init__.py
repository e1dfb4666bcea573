"""
huepalette

Turns a raster image into a perceptually distinct, named, accessibility-annotated
color palette. The public entry point is the extraction orchestrator.
"""

__version__ = "1.0.0"
