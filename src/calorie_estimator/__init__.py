"""
Food volume estimation from RGB-D captures.

Modules:
    services.volume: mask/depth sampling and depth-to-volume estimation
    services.analysis: per-detection volume results for a captured frame
    services.segmentation: interface for the upstream segmentation provider
"""

__version__ = "0.1.0"
