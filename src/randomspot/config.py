# src/randomspot/config.py
import os

from randomspot.utils.utils_geo import BOUNDARIES_URL, OUTPUT_PATH, SEED

BOUNDARIES = BOUNDARIES_URL  # path or URL of the boundary dataset

# Single selection: name of the region to drop a spot in.
# None -> multi-region mode (area-weighted draw over SELECT_STATUSES).
REGION_NAME = None
SELECT_STATUSES = None  # e.g. ("Member State",) to leave territories out

RUN_SEED = SEED
N_SPOTS = 1

# Bulk dataset
DATASET_POINTS = 100_000
DATASET_WEIGHTED = True
DATASET_DIR = os.path.join(OUTPUT_PATH, "datasets")
