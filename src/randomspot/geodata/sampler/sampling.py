# src/randomspot/geodata/sampler/sampling.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

import numpy as np
import shapely

from randomspot.geodata.regions import Region, check_kind, region_weight
from randomspot.utils.utils_geo import (
    BATCH_SIZE,
    MAX_ATTEMPTS,
    SEED,
    flat_lonlat,
)
from .errors import (
    EmptyGeometry,
    NoSelectableRegion,
    SamplingExhausted,
)

# --------------------------- value types ----------------------------

@dataclass(frozen=True)
class BoundingBox:
    min_lng: float
    min_lat: float
    max_lng: float
    max_lat: float

    @property
    def area(self) -> float:
        return (self.max_lng - self.min_lng) * (self.max_lat - self.min_lat)


@dataclass(frozen=True)
class SampledPoint:
    region_id: str
    lat: float
    lng: float

    def as_latlng(self) -> tuple[float, float]:
        """Map-widget order [lat, lng]."""
        return (self.lat, self.lng)

    def popup_text(self) -> str:
        return f"Random Spot in {self.region_id} at ({self.lat:.5f}, {self.lng:.5f})"

    def to_feature(self) -> dict:
        """GeoJSON Point Feature (coordinates in [lng, lat] order)."""
        return {
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": [self.lng, self.lat]},
            "properties": {"region": self.region_id},
        }

# --------------------------- geometry predicates --------------------

def bounding_box(region: Region) -> BoundingBox:
    """
    Minimal axis-aligned box around every vertex of every ring and part.

    Raises
    ------
    EmptyGeometry
        If the region has no coordinates at all.
    """
    coords = flat_lonlat(region.geometry)
    if coords.shape[0] == 0:
        raise EmptyGeometry(f"Region '{region.name}' has no coordinates to bound.")
    lo = coords.min(axis=0)
    hi = coords.max(axis=0)
    return BoundingBox(float(lo[0]), float(lo[1]), float(hi[0]), float(hi[1]))

def points_in_region(region: Region, lng, lat) -> np.ndarray:
    """
    Vectorized point-in-region test.

    Polygon: point-in-polygon against its rings, holes excluded.
    MultiPolygon: a point is inside if it is inside any of its parts.
    Points on a boundary count as inside.

    Parameters
    ----------
    region : Region
        Region to test against.
    lng, lat : array-like
        Candidate coordinates in degrees, same shape.

    Returns
    -------
    inside : ndarray
        Boolean mask, same shape as `lng`.

    Raises
    ------
    UnsupportedGeometry
        If the geometry is neither Polygon nor MultiPolygon.
    """
    check_kind(region)
    lng = np.asarray(lng, dtype=np.float64)
    lat = np.asarray(lat, dtype=np.float64)
    # a MultiPolygon intersects a point iff one of its parts does
    shapely.prepare(region.geometry)
    return shapely.intersects_xy(region.geometry, lng, lat)

def point_in_region(region: Region, lng: float, lat: float) -> bool:
    """Scalar form of `points_in_region`."""
    return bool(points_in_region(region, [lng], [lat])[0])

# --------------------------- weighted selection ---------------------

def select_weighted(pairs: Sequence[tuple[Region, float]], rng: np.random.Generator) -> Region:
    '''
    Picks one region with probability weight / total weight.

    Draws r ~ U(0, total) and walks the cumulative weights, returning the
    first region whose cumulative weight exceeds r, so zero-weight regions
    are never picked.

    Parameters
    ----------
    pairs : sequence of (Region, weight)
        Ordered candidates. Weights must be finite and non-negative.
    rng : numpy Generator
        Entropy source.

    Raises
    ------
    NoSelectableRegion
        If `pairs` is empty or all weights are zero.
    UnsupportedGeometry
        If any candidate is not polygonal, whatever the draw would pick.
    ValueError
        On negative or non-finite weights.
    '''
    if len(pairs) == 0:
        raise NoSelectableRegion("No regions to select from.")
    for region, _ in pairs:
        check_kind(region)
    if len(pairs) == 1:
        return pairs[0][0]

    w = np.array([float(weight) for _, weight in pairs], dtype=np.float64)
    if not np.all(np.isfinite(w)) or np.any(w < 0):
        raise ValueError(f"Weights must be finite and non-negative, got {w.tolist()}")
    cum = np.cumsum(w)
    total = float(cum[-1])
    if total <= 0.0:
        raise NoSelectableRegion(f"All {len(pairs)} regions have zero weight.")

    r = rng.uniform(0.0, total)
    i = int(np.searchsorted(cum, r, side="right"))
    # guard against r landing on total through rounding
    i = min(i, int(np.flatnonzero(w > 0)[-1]))
    return pairs[i][0]

# --------------------------- sampler --------------------------------

class RegionSampler:
    """
    Uniform random points inside region polygons.

    Responsibilities
    ----------------
    - Rejection sampling over a region's bounding box until a candidate passes
      the point-in-region test (`sample_point`, `sample_points`).
    - Area-proportional choice among several regions (`select_region`), and
      the two combined (`sample`).

    Candidates are drawn in vectorized batches; the first accepted candidate
    in draw order is returned, so the result stays uniform over the region.

    Parameters
    ----------
    rng : numpy Generator, optional
        Entropy source. If None, one is created from `seed`.
    seed : int or None
        Seed for the default Generator (ignored when `rng` is given).
    max_attempts : int or None
        Ceiling on candidates drawn per call. None removes the ceiling.
    batch_size : int
        Candidates drawn per round.
    """

    def __init__(
        self,
        rng: Optional[np.random.Generator] = None,
        seed: int | None = SEED,
        max_attempts: int | None = MAX_ATTEMPTS,
        batch_size: int = BATCH_SIZE,
    ):
        if max_attempts is not None and max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1 or None, got {max_attempts}")
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.max_attempts = max_attempts
        self.batch_size = int(batch_size)

    # ---- helpers

    def _draw_candidates(self, bbox: BoundingBox, k: int) -> tuple[np.ndarray, np.ndarray]:
        lng = self.rng.uniform(bbox.min_lng, bbox.max_lng, size=k)
        lat = self.rng.uniform(bbox.min_lat, bbox.max_lat, size=k)
        return lng, lat

    def _budget(self, attempts: int) -> int:
        if self.max_attempts is None:
            return self.batch_size
        return min(self.batch_size, self.max_attempts - attempts)

    # ---- public API

    def sample_points(self, region: Region, n: int) -> tuple[np.ndarray, np.ndarray]:
        """
        Draws `n` points uniformly over the region's area.

        Returns
        -------
        lng, lat : ndarray
            Accepted coordinates (float64), shape (n,), in draw order.

        Raises
        ------
        UnsupportedGeometry, EmptyGeometry
            Before any draw, for invalid input.
        SamplingExhausted
            If `max_attempts` candidates were drawn with fewer than `n` accepted.
        """
        check_kind(region)
        bbox = bounding_box(region)
        if n <= 0:
            return np.empty(0, np.float64), np.empty(0, np.float64)

        out_lng, out_lat = [], []
        accepted = 0
        attempts = 0
        while accepted < n:
            k = self._budget(attempts)
            if k <= 0:
                raise SamplingExhausted(region.name, attempts, accepted, n)
            lng, lat = self._draw_candidates(bbox, k)
            attempts += k

            mask = points_in_region(region, lng, lat)
            take = np.flatnonzero(mask)[: n - accepted]
            out_lng.append(lng[take])
            out_lat.append(lat[take])
            accepted += take.size
        return np.concatenate(out_lng), np.concatenate(out_lat)

    def sample_point(self, region: Region) -> SampledPoint:
        """One uniform point inside `region`."""
        lng, lat = self.sample_points(region, 1)
        return SampledPoint(region_id=region.name, lat=float(lat[0]), lng=float(lng[0]))

    def select_region(self, pairs: Sequence[tuple[Region, float]]) -> Region:
        """Area-proportional (or weight-proportional) pick among `pairs`."""
        return select_weighted(pairs, self.rng)

    def sample(self, regions: Iterable[Region], weights: Optional[Sequence[float]] = None) -> SampledPoint:
        """
        Multi-region mode: pick a region by weight, then a point inside it.

        Parameters
        ----------
        regions : iterable of Region
            Candidate regions.
        weights : sequence of float, optional
            One weight per region. Defaults to `region.weight`, falling back
            to the region's geodesic area in km^2.
        """
        regions = list(regions)
        if weights is None:
            weights = [region_weight(r) for r in regions]
        elif len(weights) != len(regions):
            raise ValueError(f"Got {len(weights)} weights for {len(regions)} regions.")
        region = self.select_region(list(zip(regions, weights)))
        return self.sample_point(region)
