"""huepalette services: segmentation, color stages and orchestration."""
