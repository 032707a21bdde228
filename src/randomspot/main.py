# src/randomspot/main.py
import os
import time

from randomspot.geodata.regions import find_region, load_regions, selectable_regions
from randomspot.geodata.sampler.dataset import sample_dataset, write_dataset, write_geojson
from randomspot.geodata.sampler.errors import RegionNotFound, RegionSamplingError
from randomspot.geodata.sampler.sampling import RegionSampler
from randomspot.utils.utils import human_int
from randomspot.config import *

def spot(regions=None, region_name=REGION_NAME, n=N_SPOTS, out_path=""):
    """
    Drops `n` random spots and prints the popup line for each.

    With `region_name` set, every spot lands in that region. Otherwise each
    spot first draws a region with probability proportional to its area.
    Errors are reported and the run is aborted, never retried.
    """
    t0 = time.perf_counter()
    if regions is None:
        regions = load_regions(BOUNDARIES)
        print(f"Loaded {len(regions)} regions: {time.perf_counter() - t0:.3f}s")

    sampler = RegionSampler(seed=RUN_SEED)
    points = []
    try:
        if region_name:
            region = find_region(regions, region_name)
            points = [sampler.sample_point(region) for _ in range(n)]
        else:
            pairs = selectable_regions(regions, statuses=SELECT_STATUSES)
            for _ in range(n):
                points.append(sampler.sample_point(sampler.select_region(pairs)))
    except (RegionNotFound, RegionSamplingError) as e:
        print(f"Could not drop a spot: {e}")
        return []

    for p in points:
        print(p.popup_text())
    if out_path:
        write_geojson(points, out_path)
    return points

def dataset(regions=None, n_total=DATASET_POINTS, weighted=DATASET_WEIGHTED):
    """
    Writes `n_total` random points over all selectable regions to Parquet.
    """
    if regions is None:
        regions = load_regions(BOUNDARIES)
    if SELECT_STATUSES is not None:
        regions = [r for r in regions if r.status in SELECT_STATUSES]

    t0 = time.perf_counter()
    df = sample_dataset(regions, n_total, sampler=RegionSampler(seed=RUN_SEED),
                        weighted=weighted, progress=True)
    print(f"Sampling: {time.perf_counter() - t0:.3f}s")

    kind = "area" if weighted else "equal"
    return write_dataset(df, os.path.join(DATASET_DIR, f"spots_{kind}_{human_int(n_total)}.parquet"))

if __name__ == "__main__":
    spot()
    #dataset()
