"""
huepalette color stages.

Sampling, clustering, deduplication, diversity, naming, accessibility,
harmony and metadata scoring for palette extraction.
"""

__version__ = "1.0.0"
