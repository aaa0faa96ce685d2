"""
Description:
    Reads the aggregated nine-ecoregion boundary layer, simplifies its polygons for
    fast rendering, and flattens the nested geometry (region -> polygon -> ring ->
    vertex) into a plain vertex table that matplotlib can draw one path at a time.

Inputs:
    - Ecoregion vector layer (shapefile or any OGR format) with attribute fields:
        * WSA9       : Short ecoregion code (e.g. "CPL", "XER")
        * WSA9_NAME  : Descriptive ecoregion name
      in the NAD83 Albers equal-area conic projection.

Outputs:
    - GeoDataFrame of (simplified) ecoregions
    - DataFrame of boundary vertices:
        region_id, group, piece, ring, hole, order, x, y
"""

import warnings

import numpy as np
import pandas as pd
import geopandas as gpd
from pyproj import CRS
from shapely.geometry import Polygon, MultiPolygon

# NAD83 / Conus Albers: standard parallels 29.5 / 45.5, origin 23N, central meridian 96W
ALBERS_CRS = (
    "+proj=aea +lat_0=23 +lon_0=-96 +lat_1=29.5 +lat_2=45.5 "
    "+x_0=0 +y_0=0 +datum=NAD83 +units=m +no_defs"
)

SIMPLIFY_TOLERANCE = 1000  # map units (m)

REGION_ID_FIELD = "WSA9"
REGION_NAME_FIELD = "WSA9_NAME"

VERTEX_COLUMNS = ["region_id", "group", "piece", "ring", "hole", "order", "x", "y"]

# Keys that define a projected CRS; used when two descriptors differ only in naming
# (ESRI .prj vs PROJ string)
_PROJECTION_KEYS = ("proj", "lat_0", "lon_0", "lat_1", "lat_2", "x_0", "y_0", "units")


def load_ecoregions(path, id_field=REGION_ID_FIELD, name_field=REGION_NAME_FIELD):
    """
    Read the ecoregion polygon layer.

    Args:
        path (str or Path): Vector dataset readable by geopandas.
        id_field (str): Attribute holding the short region code.
        name_field (str): Attribute holding the region name.

    Returns:
        GeoDataFrame: Attribute table plus polygon geometry, in file order.
    """
    regions = gpd.read_file(path)
    if regions.crs is None:
        raise ValueError(f"Ecoregion layer {path} has no CRS.")

    missing = [f for f in (id_field, name_field) if f not in regions.columns]
    if missing:
        raise ValueError(f"Ecoregion layer {path} missing field(s): {', '.join(missing)}")

    xmin, ymin, xmax, ymax = regions.total_bounds
    print(f"[INFO] Loaded {len(regions)} ecoregions from {path}")
    print(f"[INFO]   bounds: ({xmin:.0f}, {ymin:.0f}, {xmax:.0f}, {ymax:.0f})")
    print(f"[INFO]   crs: {regions.crs.to_string()}")
    return regions


def _projection_params(crs):
    with warnings.catch_warnings():
        # to_dict() warns that datum details are lost; only projection keys are read
        warnings.simplefilter("ignore", UserWarning)
        params = crs.to_dict()
    return {k: params.get(k) for k in _PROJECTION_KEYS}


def check_crs(expected, actual, label="layer"):
    """
    Require two coordinate reference systems to describe the same projection.

    The point tables carry no CRS of their own, so the report passes the CRS they
    were exported in as ``expected`` and the boundary layer's CRS as ``actual``.

    Raises:
        ValueError: If either CRS is missing or they are not equivalent.
    """
    if expected is None or actual is None:
        raise ValueError(f"Cannot overlay {label}: CRS is undefined.")

    expected, actual = CRS(expected), CRS(actual)
    if expected.equals(actual, ignore_axis_order=True):
        return
    if expected.is_projected and actual.is_projected:
        same_ellipsoid = np.allclose(
            [expected.ellipsoid.semi_major_metre, expected.ellipsoid.inverse_flattening],
            [actual.ellipsoid.semi_major_metre, actual.ellipsoid.inverse_flattening],
        )
        if same_ellipsoid and _projection_params(expected) == _projection_params(actual):
            return
    raise ValueError(
        f"CRS mismatch for {label}: expected {expected.to_string()}, got {actual.to_string()}"
    )


def simplify_ecoregions(regions, tolerance=SIMPLIFY_TOLERANCE, preserve_topology=True):
    """
    Simplify the ecoregion polygons for rendering.

    With ``preserve_topology`` the layer is simplified as one polygonal coverage:
    each border shared by two regions is simplified once and written back to both,
    so neighbours neither overlap nor open gaps, and no ring self-intersects.
    Without it every polygon gets a plain Douglas-Peucker pass of its own.

    Returns a new GeoDataFrame with the attribute table copied unchanged; ``regions``
    is not modified. A tolerance of 0 returns the geometry untouched.
    """
    if tolerance < 0:
        raise ValueError(f"Simplification tolerance must be >= 0, got {tolerance}")

    simplified = regions.copy()
    if tolerance == 0:
        return simplified

    geom_col = regions.geometry.name
    if preserve_topology:
        simplified[geom_col] = regions.geometry.simplify_coverage(tolerance)
    else:
        simplified[geom_col] = regions.geometry.simplify(tolerance, preserve_topology=False)

    before = sum(ring_vertex_counts(regions))
    after = sum(ring_vertex_counts(simplified))
    print(f"[INFO] Simplified ecoregions (tolerance={tolerance}): {before} -> {after} vertices")
    return simplified


def _iter_rings(geom):
    """Yield (piece, hole, ring) for each ring of a polygonal geometry, exterior first."""
    if isinstance(geom, Polygon):
        parts = [geom]
    elif isinstance(geom, MultiPolygon):
        parts = list(geom.geoms)
    else:
        raise ValueError(f"Expected Polygon or MultiPolygon, got {geom.geom_type}")

    for piece, poly in enumerate(parts, start=1):
        yield piece, False, poly.exterior
        for interior in poly.interiors:
            yield piece, True, interior


def ring_vertex_counts(regions):
    """Number of stored vertices of every ring, in flattening order."""
    return [
        len(ring.coords)
        for geom in regions.geometry
        for _, _, ring in _iter_rings(geom)
    ]


def flatten_ecoregions(regions, id_field=REGION_ID_FIELD):
    """
    Flatten ecoregion polygons into one row per boundary vertex.

    Traversal is region -> polygon part -> ring (exterior, then holes) -> vertex, so
    consecutive rows sharing a ``group`` trace one closed ring. ``group`` is
    "<region_id>.<n>" with ``n`` counting the rings of that region.

    Args:
        regions (GeoDataFrame): Ecoregion polygons.
        id_field (str): Attribute holding the region identifier.

    Returns:
        DataFrame: Columns region_id, group, piece, ring, hole, order, x, y.
    """
    frames = []
    for region_id, geom in zip(regions[id_field], regions.geometry):
        if geom is None or geom.is_empty:
            raise ValueError(f"Ecoregion {region_id} has no geometry.")

        for n, (piece, hole, ring) in enumerate(_iter_rings(geom), start=1):
            coords = np.asarray(ring.coords)[:, :2]
            frames.append(pd.DataFrame({
                "region_id": region_id,
                "group": f"{region_id}.{n}",
                "piece": piece,
                "ring": n,
                "hole": hole,
                "x": coords[:, 0],
                "y": coords[:, 1],
            }))

    if not frames:
        return pd.DataFrame(columns=VERTEX_COLUMNS)

    vertices = pd.concat(frames, ignore_index=True)
    vertices["order"] = np.arange(1, len(vertices) + 1)
    vertices = vertices[VERTEX_COLUMNS]
    print(f"[INFO] Flattened {vertices['region_id'].nunique()} ecoregions into "
          f"{vertices['group'].nunique()} boundary paths ({len(vertices)} vertices)")
    return vertices


def ecoregion_label_points(regions, id_field=REGION_ID_FIELD, name_field=REGION_NAME_FIELD):
    """One interior point per ecoregion for placing its code on a map."""
    points = regions.geometry.representative_point()
    return pd.DataFrame({
        "region_id": regions[id_field].to_numpy(),
        "name": regions[name_field].to_numpy(),
        "x": points.x.to_numpy(),
        "y": points.y.to_numpy(),
    })
