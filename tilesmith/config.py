"""
Conversion options shared by the CLI and the library entry point.
"""

import os
from dataclasses import dataclass, field

# Web Mercator, the usual web-mapping projection
DEFAULT_SRS = "EPSG:3857"

# Fixed quality of repacked atlas textures
JPEG_QUALITY = 85


def _default_workers() -> int:
    return os.cpu_count() or 1


@dataclass
class ConversionOptions:
    """
    Options for a single conversion run.

    Attributes:
        srs: Destination spatial reference (EPSG code, WKT or PROJ string)
        overwrite: Permit writing into an existing output directory
        workers: Size of the worker thread pool
        jpeg_quality: Quality of repacked atlas textures
    """
    srs: str = DEFAULT_SRS
    overwrite: bool = False
    workers: int = field(default_factory=_default_workers)
    jpeg_quality: int = JPEG_QUALITY

    def __post_init__(self):
        if self.workers is None or self.workers < 1:
            raise ValueError(f"workers must be a positive integer, got {self.workers}")
        if not 1 <= self.jpeg_quality <= 100:
            raise ValueError(f"jpeg_quality must be within 1..100, got {self.jpeg_quality}")
