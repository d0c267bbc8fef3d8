"""Mosaic Gallery - searchable, likeable image gallery service."""

__version__ = "0.1.0"

from mosaic.core.config import MosaicConfig, config

__all__ = [
    "MosaicConfig",
    "config",
]
