import json

import numpy as np
import pytest

from randomspot.geodata.regions import Region
from randomspot.geodata.sampler.sampling import RegionSampler


def rect(x0, y0, x1, y1):
    return [[x0, y0], [x0, y1], [x1, y1], [x1, y0], [x0, y0]]


@pytest.fixture
def square():
    return Region.from_geojson("Square", {"type": "Polygon", "coordinates": [rect(0, 0, 10, 10)]})


@pytest.fixture
def two_rects():
    # areas 1 and 3, disjoint
    return Region.from_geojson("Islands", {
        "type": "MultiPolygon",
        "coordinates": [[rect(0, 0, 1, 1)], [rect(3, 0, 6, 1)]],
    })


@pytest.fixture
def donut():
    return Region.from_geojson("Donut", {
        "type": "Polygon",
        "coordinates": [rect(0, 0, 10, 10), rect(2, 2, 8, 8)],
    })


@pytest.fixture
def triangle():
    return Region.from_geojson("Wedge", {
        "type": "Polygon",
        "coordinates": [[[0, 0], [10, 0], [0, 10], [0, 0]]],
    })


@pytest.fixture
def sampler():
    return RegionSampler(rng=np.random.default_rng(1234))


@pytest.fixture
def boundaries_path(tmp_path):
    fc = {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {"name": "Westland", "status": "Member State"},
                "geometry": {"type": "Polygon", "coordinates": [rect(0, 0, 2, 2)]},
            },
            {
                "type": "Feature",
                "properties": {"name": "Eastland", "status": "Member State"},
                "geometry": {"type": "MultiPolygon", "coordinates": [[rect(10, 0, 11, 1)], [rect(12, 0, 13, 1)]]},
            },
            {
                "type": "Feature",
                "properties": {"name": "Rock", "status": "UK Territory"},
                "geometry": {"type": "Polygon", "coordinates": [rect(20, 0, 20.5, 0.5)]},
            },
            {
                "type": "Feature",
                "properties": {"name": "Cable", "status": "Other"},
                "geometry": {"type": "LineString", "coordinates": [[0, 0], [5, 5]]},
            },
        ],
    }
    path = tmp_path / "boundaries.geojson"
    path.write_text(json.dumps(fc), encoding="utf-8")
    return str(path)
