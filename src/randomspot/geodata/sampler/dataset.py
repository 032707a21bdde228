# src/randomspot/geodata/sampler/dataset.py
from __future__ import annotations

import os
import time
from typing import Iterable, Optional, Sequence

import numpy as np
import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq
from tqdm import tqdm

from randomspot.geodata.regions import Region, check_kind, region_weight
from randomspot.utils.utils import write_json
from .errors import NoSelectableRegion
from .sampling import RegionSampler, SampledPoint


def _split_counts(
    n_total: int,
    regions: Sequence[Region],
    weighted: bool,
    rng: np.random.Generator,
) -> np.ndarray:
    """
    Splits `n_total` draws across regions with one multinomial draw.

    Weighted: p ∝ region weight (area). Otherwise every region gets the same p.
    """
    if len(regions) == 0:
        raise NoSelectableRegion("No regions to sample from.")
    for region in regions:
        check_kind(region)
    if weighted:
        w = np.array([region_weight(r) for r in regions], dtype=np.float64)
    else:
        w = np.ones(len(regions), dtype=np.float64)
    if not np.all(np.isfinite(w)) or np.any(w < 0):
        raise ValueError(f"Weights must be finite and non-negative, got {w.tolist()}")
    total = w.sum()
    if total <= 0.0:
        raise NoSelectableRegion(f"All {len(regions)} regions have zero weight.")
    return rng.multinomial(n_total, w / total)

def sample_dataset(
    regions: Iterable[Region],
    n_total: int,
    sampler: Optional[RegionSampler] = None,
    weighted: bool = True,
    shuffle_points: bool = True,
    progress: bool = False,
) -> pd.DataFrame:
    """
    Draws `n_total` random points across several regions.

    Parameters
    ----------
    regions : iterable of Region
        Candidate regions.
    n_total : int
        Total number of points.
    sampler : RegionSampler, optional
        Sampler (and RNG) to use. A default-seeded one is created if None.
    weighted : bool
        If True, the expected share of each region is proportional to its
        weight (area), matching repeated multi-region draws. If False, every
        region has the same expected share.
    shuffle_points : bool
        If True, randomly permute the rows; otherwise rows are grouped by region.
    progress : bool
        Show a tqdm progress bar over regions.

    Returns
    -------
    DataFrame
        Columns: region (str), lon (float64), lat (float64).
    """
    regions = list(regions)
    sampler = sampler if sampler is not None else RegionSampler()
    counts = _split_counts(n_total, regions, weighted, sampler.rng)

    names, lons, lats = [], [], []
    it = zip(regions, counts)
    if progress:
        it = tqdm(it, total=len(regions), desc="Sampling regions")
    for region, k in it:
        if k == 0:
            continue
        lon, lat = sampler.sample_points(region, int(k))
        names.append(np.full(int(k), region.name, dtype=object))
        lons.append(lon)
        lats.append(lat)

    df = pd.DataFrame({
        "region": np.concatenate(names) if names else np.empty(0, dtype=object),
        "lon": np.concatenate(lons) if lons else np.empty(0, np.float64),
        "lat": np.concatenate(lats) if lats else np.empty(0, np.float64),
    })
    if shuffle_points and len(df):
        perm = sampler.rng.permutation(len(df))
        df = df.iloc[perm].reset_index(drop=True)
    return df

def write_dataset(df: pd.DataFrame, out_path: str, compression: str = "zstd") -> str:
    """
    Writes sampled points to one Parquet file.

    Returns
    -------
    str
        Absolute path to the written file.
    """
    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    t0 = time.perf_counter()
    table = pa.Table.from_pandas(df, preserve_index=False)
    pq.write_table(table, out_path, compression=compression)
    print(f"Wrote {len(df)} points to {out_path}: {time.perf_counter() - t0:.3f}s")
    return os.path.abspath(out_path)

# --------------------------- GeoJSON --------------------------------

def to_feature_collection(points: Iterable[SampledPoint]) -> dict:
    return {
        "type": "FeatureCollection",
        "features": [p.to_feature() for p in points],
    }

def write_geojson(points: Iterable[SampledPoint], out_path: str) -> None:
    """
    Writes sampled points as a GeoJSON FeatureCollection (stdout if `out_path` is falsy).
    """
    if out_path:
        os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    write_json(out_path, to_feature_collection(points), name="sampled points")
