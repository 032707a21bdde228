# src/randomspot/utils/utils_geo.py
import geopandas as gpd
import numpy as np
import shapely
from pyproj import Geod
from shapely.geometry.polygon import orient

# ------------------------- CONSTANTS --------------------------

GEOD = Geod(ellps="WGS84")
M2_PER_KM2 = 1_000_000.0

# --------------------------- CONFIG ---------------------------

# World boundary dataset fetched by the map page
BOUNDARIES_URL = (
    "https://raw.githubusercontent.com/EmptyCornmeal/RandomSpotToRoadMap/"
    "main/world-administrative-boundaries.geojson"
)
NAME_FIELD   = "name"
STATUS_FIELD = "status"

# Output folder for sampled datasets
OUTPUT_PATH = "src/randomspot/data"

SEED = 42 # global default seed

# Rejection sampling knobs
MAX_ATTEMPTS = 10_000_000  # candidate ceiling per call (None -> unbounded)
BATCH_SIZE   = 1024        # candidates drawn per vectorized round

POLYGONAL_TYPES = ("Polygon", "MultiPolygon")

# -----------------------------
# Geometry helpers
# -----------------------------
def flat_lonlat(geometry) -> np.ndarray:
    """
    Flattens every (lon, lat) vertex of a geometry, whatever its nesting.

    Parameters
    ----------
    geometry : shapely geometry
        Polygon, MultiPolygon or any other shapely geometry.

    Returns
    -------
    coords : ndarray
        Array of shape (V, 2) holding all vertices of all rings and parts,
        holes included. Empty geometries give shape (0, 2).
    """
    return shapely.get_coordinates(geometry)

def polygon_parts(geometry) -> list:
    """
    Returns the constituent polygons of a Polygon or MultiPolygon.
    """
    if geometry.geom_type == "MultiPolygon":
        return list(geometry.geoms)
    return [geometry]

def geodesic_area_km2(geometry) -> float:
    """
    Surface area of a lon/lat (EPSG:4326) polygonal geometry on the WGS84 ellipsoid.

    Each part is oriented counter-clockwise (holes clockwise) before being
    handed to pyproj, so the signed areas of all parts add up with holes
    subtracted.

    Parameters
    ----------
    geometry : shapely Polygon or MultiPolygon
        Geometry in degrees.

    Returns
    -------
    float
        Area in square kilometers (0.0 for empty geometries).
    """
    if geometry.is_empty:
        return 0.0
    total = 0.0
    for part in polygon_parts(geometry):
        area_m2, _ = GEOD.geometry_area_perimeter(orient(part, sign=1.0))
        total += abs(area_m2)
    return float(total / M2_PER_KM2)

# -----------------------------
# I/O
# -----------------------------

def read_gdf(
    path: str,
    layer: str | None,
    columns: list[str] | None,
    target_crs: int | str = 4326,
) -> gpd.GeoDataFrame:
    """
    Reads a GeoDataFrame from a file+layer (or URL), normalizes CRS, and keeps
    only the requested columns plus geometry.

    Parameters
    ----------
    path : str
        Path or URL to the datasource (e.g. GeoJSON, GeoPackage, FlatGeobuf).
    layer : str or None
        Layer name inside the file. If None, let GeoPandas pick the default.
    columns : list[str] or None
        Attribute columns to keep. Missing columns are ignored. If None, every
        column is kept.
    target_crs : int or str, optional
        Target CRS for the output (EPSG code or any pyproj CRS input).
        Sources without a CRS are assumed to already be in it.

    Returns
    -------
    gdf : GeoDataFrame
        GeoDataFrame with standardized CRS and only (columns, geometry).
    """
    gdf = gpd.read_file(path, layer=layer) if layer else gpd.read_file(path)

    if gdf.crs is None:
        gdf = gdf.set_crs(target_crs)
    elif not gdf.crs.equals(target_crs):
        gdf = gdf.to_crs(target_crs)

    if columns is None:
        return gdf.reset_index(drop=True)
    keep = [c for c in columns if c in gdf.columns]
    return gdf[keep + [gdf.geometry.name]].reset_index(drop=True)
