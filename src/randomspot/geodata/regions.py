# src/randomspot/geodata/regions.py
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

import geopandas as gpd
import pandas as pd
from shapely.geometry import MultiPolygon, Polygon, shape
from shapely.validation import make_valid

from randomspot.geodata.sampler.errors import RegionNotFound, UnsupportedGeometry
from randomspot.utils.utils_geo import (
    BOUNDARIES_URL,
    NAME_FIELD,
    POLYGONAL_TYPES,
    STATUS_FIELD,
    geodesic_area_km2,
    read_gdf,
)

GEOJSON_TYPES = (
    "Point", "MultiPoint", "LineString", "MultiLineString",
    "Polygon", "MultiPolygon", "GeometryCollection",
)


@dataclass(frozen=True)
class Region:
    """
    A named area of the boundary dataset.

    Attributes
    ----------
    name : str
        Identifier shown to the user (e.g. "France").
    geometry : shapely geometry
        Polygon or MultiPolygon in lon/lat degrees. Other kinds can be stored
        but are rejected by the sampler.
    weight : float, optional
        Precomputed probability mass for multi-region mode (usually area).
    status : str, optional
        Dataset classification ("Member State", "UK Territory", ...), only
        used for grouping.
    """
    name: str
    geometry: object
    weight: Optional[float] = None
    status: Optional[str] = None

    @classmethod
    def from_geojson(cls, name: str, geometry: Mapping,
                     weight: Optional[float] = None,
                     status: Optional[str] = None) -> "Region":
        """
        Builds a Region from a GeoJSON geometry mapping ({"type", "coordinates"}).
        """
        return cls(name=name, geometry=_as_geometry(geometry), weight=weight, status=status)

    @property
    def kind(self) -> str:
        return self.geometry.geom_type


def _has_coordinates(coords) -> bool:
    # True as soon as one scalar shows up at any nesting depth
    if isinstance(coords, (list, tuple)):
        return any(_has_coordinates(c) for c in coords)
    return coords is not None

def _as_geometry(geometry: Mapping):
    kind = geometry.get("type")
    coords = geometry.get("coordinates", [])
    if kind not in GEOJSON_TYPES:
        raise UnsupportedGeometry(f"Unsupported geometry type: {kind!r}")
    if kind in POLYGONAL_TYPES and not _has_coordinates(coords):
        return Polygon() if kind == "Polygon" else MultiPolygon()
    return shape(geometry)

# -----------------------------
# Boundary provider
# -----------------------------

def regions_from_gdf(
    gdf: gpd.GeoDataFrame,
    name_field: str = NAME_FIELD,
    status_field: Optional[str] = STATUS_FIELD,
    fix_invalid: bool = True,
    sort_by_name: bool = False,
) -> list[Region]:
    '''
    Converts a GeoDataFrame of boundaries into Region records.

    Parameters
    ----------
    gdf : GeoDataFrame
        Boundaries in EPSG:4326 with a name column.
    name_field : str
        Column holding the region name.
    status_field : str or None
        Column holding the region classification. Ignored if absent.
    fix_invalid : bool
        Repair invalid shapes with `make_valid` before conversion.
    sort_by_name : bool
        If True, sort regions by name; otherwise keep the dataset order.

    Returns
    -------
    list[Region]
        One Region per polygonal feature. Empty and non-polygonal
        features are dropped.
    '''
    if name_field not in gdf.columns:
        raise ValueError(f"Name field '{name_field}' not found. Available: {list(gdf.columns)}")
    has_status = status_field is not None and status_field in gdf.columns

    regions = []
    for _, row in gdf.iterrows():
        geom = row.geometry
        if geom is None or geom.is_empty:
            continue
        if fix_invalid and not geom.is_valid:
            geom = make_valid(geom)
            # make_valid may hand back a collection; keep its polygonal part
            if geom.geom_type == "GeometryCollection":
                polys = [g for g in geom.geoms if g.geom_type in POLYGONAL_TYPES]
                geom = MultiPolygon([p for g in polys for p in getattr(g, "geoms", [g])])
        if geom.is_empty or geom.geom_type not in POLYGONAL_TYPES:
            continue
        status = row[status_field] if has_status else None
        regions.append(Region(
            name=str(row[name_field]),
            geometry=geom,
            status=None if pd.isna(status) else str(status),
        ))
    if sort_by_name:
        regions.sort(key=lambda r: r.name)
    return regions

def load_regions(
    path: str = BOUNDARIES_URL,
    layer: Optional[str] = None,
    name_field: str = NAME_FIELD,
    status_field: Optional[str] = STATUS_FIELD,
    sort_by_name: bool = False,
) -> list[Region]:
    '''
    Loads the boundary dataset once and returns its regions.

    Parameters
    ----------
    path : str
        File path or URL readable by GeoPandas. Defaults to the world
        administrative boundaries GeoJSON.
    layer : str or None
        Layer name for multi-layer sources.
    name_field, status_field : str
        Attribute columns for the region name and classification.
    sort_by_name : bool
        Sort by name instead of keeping the dataset order.
    '''
    columns = [name_field] + ([status_field] if status_field else [])
    gdf = read_gdf(path=path, layer=layer, columns=columns, target_crs=4326)
    return regions_from_gdf(gdf, name_field=name_field, status_field=status_field,
                            sort_by_name=sort_by_name)

# -----------------------------
# Lookup and grouping
# -----------------------------

def find_region(regions: Iterable[Region], name: str) -> Region:
    """Returns the region called `name`, raising RegionNotFound otherwise."""
    for region in regions:
        if region.name == name:
            return region
    raise RegionNotFound(name)

def group_by_status(regions: Iterable[Region]) -> dict[str, list[str]]:
    """
    Groups region names under their status, keeping input order.

    Regions without a status go under "Other".
    """
    groups = defaultdict(list)
    for region in regions:
        groups[region.status or "Other"].append(region.name)
    return dict(groups)

def check_kind(region: Region) -> str:
    """
    Returns the geometry kind, raising UnsupportedGeometry unless it is
    Polygon or MultiPolygon.
    """
    kind = region.geometry.geom_type
    if kind not in POLYGONAL_TYPES:
        raise UnsupportedGeometry(
            f"Region '{region.name}' has geometry type {kind!r}; "
            f"expected one of {POLYGONAL_TYPES}."
        )
    return kind

def region_weight(region: Region) -> float:
    """
    Precomputed weight if present, else geodesic area in km^2.

    Non-polygonal regions raise UnsupportedGeometry instead of weighing 0.
    """
    check_kind(region)
    if region.weight is not None:
        return float(region.weight)
    return geodesic_area_km2(region.geometry)

def selectable_regions(
    regions: Iterable[Region],
    statuses: Optional[Iterable[str]] = None,
    weight_by_area: bool = True,
) -> list[tuple[Region, float]]:
    '''
    Builds the flat (Region, weight) list consumed by multi-region mode.

    Parameters
    ----------
    regions : iterable of Region
        Candidate regions.
    statuses : iterable of str, optional
        Keep only regions whose status is listed. None keeps everything.
    weight_by_area : bool
        If True, weight = `region_weight` (precomputed or geodesic area).
        If False, every region gets weight 1.0.
    '''
    keep = None if statuses is None else set(statuses)
    pairs = []
    for region in regions:
        if keep is not None and region.status not in keep:
            continue
        check_kind(region)
        pairs.append((region, region_weight(region) if weight_by_area else 1.0))
    return pairs
