import numpy as np
import pytest
from scipy import stats
from shapely.geometry import LineString, MultiPolygon, Polygon, box

from randomspot.geodata.regions import Region
from randomspot.geodata.sampler.errors import (
    EmptyGeometry,
    SamplingExhausted,
    UnsupportedGeometry,
)
from randomspot.geodata.sampler.sampling import (
    BoundingBox,
    RegionSampler,
    SampledPoint,
    bounding_box,
    point_in_region,
    points_in_region,
)


# ════════════════════════════════════════════════════════
# 1) bounding box
# ════════════════════════════════════════════════════════
def test_bounding_box_square(square):
    assert bounding_box(square) == BoundingBox(0.0, 0.0, 10.0, 10.0)


def test_bounding_box_spans_all_parts(two_rects):
    bbox = bounding_box(two_rects)
    assert bbox == BoundingBox(0.0, 0.0, 6.0, 1.0)
    assert bbox.area == pytest.approx(6.0)


def test_bounding_box_empty_coordinates():
    region = Region.from_geojson("Nowhere", {"type": "Polygon", "coordinates": []})
    with pytest.raises(EmptyGeometry):
        bounding_box(region)


# ════════════════════════════════════════════════════════
# 2) point-in-region
# ════════════════════════════════════════════════════════
def test_point_in_polygon(square):
    assert point_in_region(square, 5.0, 5.0)
    assert not point_in_region(square, 11.0, 5.0)
    assert point_in_region(square, 0.0, 5.0)  # boundary counts as inside


def test_point_in_polygon_honors_holes(donut):
    assert point_in_region(donut, 1.0, 1.0)
    assert not point_in_region(donut, 5.0, 5.0)


def test_point_in_multipolygon_any_part(two_rects):
    mask = points_in_region(two_rects, [0.5, 4.5, 2.0], [0.5, 0.5, 0.5])
    assert mask.tolist() == [True, True, False]


def test_many_part_multipolygon_matches_parts():
    cells = [box(i, j, i + 0.5, j + 0.5) for i in range(20) for j in range(20)]
    region = Region("Grid", MultiPolygon(cells))
    rng = np.random.default_rng(3)
    lng, lat = rng.uniform(0, 20, 5000), rng.uniform(0, 20, 5000)
    expected = np.zeros(lng.shape, dtype=bool)
    for cell in cells:
        expected |= (lng >= cell.bounds[0]) & (lng <= cell.bounds[2]) & (lat >= cell.bounds[1]) & (lat <= cell.bounds[3])
    assert np.array_equal(points_in_region(region, lng, lat), expected)


def test_point_in_region_rejects_linestring():
    region = Region("Road", LineString([(0, 0), (1, 1)]))
    with pytest.raises(UnsupportedGeometry):
        point_in_region(region, 0.5, 0.5)


# ════════════════════════════════════════════════════════
# 3) rejection sampling
# ════════════════════════════════════════════════════════
def test_square_scenario(square, sampler):
    lng, lat = sampler.sample_points(square, 1000)
    assert lng.shape == lat.shape == (1000,)
    assert np.all((lng >= 0) & (lng <= 10))
    assert np.all((lat >= 0) & (lat <= 10))
    assert points_in_region(square, lng, lat).all()
    assert abs(lng.mean() - 5.0) < 0.5
    assert abs(lat.mean() - 5.0) < 0.5


@pytest.mark.parametrize("name", ["square", "two_rects", "donut", "triangle"])
def test_sampled_points_are_inside(name, request, sampler):
    region = request.getfixturevalue(name)
    lng, lat = sampler.sample_points(region, 500)
    assert points_in_region(region, lng, lat).all()
    p = sampler.sample_point(region)
    assert p.region_id == region.name
    assert point_in_region(region, p.lng, p.lat)


def test_rectangle_marginals_are_uniform():
    region = Region("Box", Polygon([(-4, 2), (6, 2), (6, 5), (-4, 5)]))
    sampler = RegionSampler(rng=np.random.default_rng(7))
    lng, lat = sampler.sample_points(region, 10_000)
    assert stats.kstest(lng, "uniform", args=(-4, 10)).pvalue > 0.001
    assert stats.kstest(lat, "uniform", args=(2, 3)).pvalue > 0.001


def test_multipolygon_parts_follow_area(two_rects):
    sampler = RegionSampler(rng=np.random.default_rng(99))
    lng, _ = sampler.sample_points(two_rects, 10_000)
    small = np.mean(lng <= 1.0)
    assert small == pytest.approx(0.25, abs=0.03)
    assert 1.0 - small == pytest.approx(0.75, abs=0.03)


def test_donut_never_lands_in_hole(donut, sampler):
    lng, lat = sampler.sample_points(donut, 2000)
    in_hole = (lng > 2) & (lng < 8) & (lat > 2) & (lat < 8)
    assert not in_hole.any()


def test_same_seed_same_points(square):
    a = RegionSampler(seed=5).sample_point(square)
    b = RegionSampler(seed=5).sample_point(square)
    assert a == b


def test_degenerate_box_has_zero_area():
    region = Region("Seam", Polygon([(1, 0), (1, 5), (1, 2), (1, 0)]))
    box = bounding_box(region)
    assert box.area == 0.0
    assert box.min_lng == box.max_lng == 1.0


def test_linestring_raises_before_drawing():
    region = Region.from_geojson("Road", {"type": "LineString", "coordinates": [[0, 0], [1, 1]]})
    sampler = RegionSampler(max_attempts=10)
    with pytest.raises(UnsupportedGeometry):
        sampler.sample_point(region)


def test_unknown_geometry_tag():
    with pytest.raises(UnsupportedGeometry):
        Region.from_geojson("Blob", {"type": "Blob", "coordinates": [[0, 0]]})


def test_empty_region_raises(sampler):
    region = Region.from_geojson("Nowhere", {"type": "MultiPolygon", "coordinates": []})
    with pytest.raises(EmptyGeometry):
        sampler.sample_point(region)


def test_attempt_ceiling():
    # two specks at opposite corners of a wide box
    specks = Region.from_geojson("Specks", {
        "type": "MultiPolygon",
        "coordinates": [
            [[[0, 0], [0, 1e-7], [1e-7, 1e-7], [1e-7, 0], [0, 0]]],
            [[[100, 50], [100, 50 + 1e-7], [100 + 1e-7, 50 + 1e-7], [100 + 1e-7, 50], [100, 50]]],
        ],
    })
    sampler = RegionSampler(rng=np.random.default_rng(0), max_attempts=50, batch_size=16)
    with pytest.raises(SamplingExhausted) as exc:
        sampler.sample_points(specks, 10)
    assert exc.value.attempts == 50
    assert isinstance(exc.value, RuntimeError)
    assert str(exc.value).startswith("Only 0 of 10 requested points")


def test_attempt_ceiling_reports_partial_progress(square):
    # the square fills its box, so every candidate is accepted
    sampler = RegionSampler(rng=np.random.default_rng(0), max_attempts=50, batch_size=16)
    with pytest.raises(SamplingExhausted) as exc:
        sampler.sample_points(square, 100)
    assert (exc.value.accepted, exc.value.requested) == (50, 100)
    assert "Only 50 of 100 requested points" in str(exc.value)


def test_invalid_sampler_knobs():
    with pytest.raises(ValueError):
        RegionSampler(max_attempts=0)
    with pytest.raises(ValueError):
        RegionSampler(batch_size=0)


def test_zero_points(square, sampler):
    lng, lat = sampler.sample_points(square, 0)
    assert lng.size == 0 and lat.size == 0


# ════════════════════════════════════════════════════════
# 4) sampled point output
# ════════════════════════════════════════════════════════
def test_sampled_point_outputs():
    p = SampledPoint(region_id="France", lat=46.1234567, lng=2.7654321)
    assert p.as_latlng() == (46.1234567, 2.7654321)
    assert p.popup_text() == "Random Spot in France at (46.12346, 2.76543)"
    feature = p.to_feature()
    assert feature["geometry"]["coordinates"] == [2.7654321, 46.1234567]
    assert feature["properties"] == {"region": "France"}
