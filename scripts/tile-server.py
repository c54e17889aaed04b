#!/usr/bin/env python3
"""
Contour Tile Server

Serves vector contour tiles generated on demand from the raster DEM
tiles in a directory of PMTiles archives.

Usage:
    python scripts/tile-server.py ./pmtiles-data
    ENCODING=mapbox CONTOUR_INTERVAL=20 MAJOR_INTERVAL=100 python scripts/tile-server.py ./pmtiles-data
"""

from dem_contours.server import main


if __name__ == "__main__":
    main()
