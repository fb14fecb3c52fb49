"""
Pytest configuration and shared fixtures.
"""

import matplotlib
import pytest

matplotlib.use("Agg")

from geohash_index import GeoHashIndex


@pytest.fixture
def properties():
    """Index handler properties as they come from the table definition."""
    return {
        "index_handler": "mygeohash",
        "index_handler.mygeohash.type": "geohash",
        "index_handler.mygeohash.sourcecolumns": "longitude,latitude",
        "index_handler.mygeohash.sourcecolumntypes": "bigint,bigint",
        "index_handler.mygeohash.originlatitude": "0",
        "index_handler.mygeohash.minlongitude": "0",
        "index_handler.mygeohash.maxlongitude": "1",
        "index_handler.mygeohash.minlatitude": "0",
        "index_handler.mygeohash.maxlatitude": "1",
        "index_handler.mygeohash.gridsize": "20000",
        "index_handler.mygeohash.conversionratio": "1000000",
    }


@pytest.fixture
def handler(properties):
    """GeoHash handler over [0, 1] x [0, 1] with ~0.18 degree cells (8x8 grid)."""
    geohash = GeoHashIndex()
    geohash.init(properties)
    return geohash


@pytest.fixture
def grid_points():
    """Regular grid of sample points across the handler area."""
    return [(0.01 + i * 0.0198, 0.01 + j * 0.0198)
            for i in range(50) for j in range(50)]
