"""
TileSmith Quick Start Example

Converts an SLPK archive into textured OBJ meshes in UTM zone 33N.

Usage:
    python examples/quickstart.py city.slpk output/city
"""

import logging
import sys

from tilesmith import ConversionOptions, convert_archive

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

if len(sys.argv) != 3:
    print(__doc__)
    sys.exit(1)

options = ConversionOptions(srs="EPSG:32633", overwrite=True, workers=4)
count = convert_archive(sys.argv[1], sys.argv[2], options)
print(f"✅ Wrote {count} meshes to {sys.argv[2]}")
