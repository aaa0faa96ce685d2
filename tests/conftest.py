"""Shared pytest fixtures: small synthetic MMI tables and a nine-region boundary layer."""

import sys
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import geopandas as gpd
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import pytest
from shapely.geometry import Polygon

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from ecoregion_geometry import ALBERS_CRS  # noqa: E402

REGION_CODES = ["CPL", "NAP", "NPL", "SAP", "SPL", "TPL", "UMW", "WMT", "XER"]
REGION_NAMES = [
    "Coastal Plains", "Northern Appalachians", "Northern Plains",
    "Southern Appalachians", "Southern Plains", "Temperate Plains",
    "Upper Midwest", "Western Mountains", "Xeric",
]

CELL = 100_000.0  # 100 km grid cells


def _noisy_edge(p, q, n, jitter, rng):
    """Interior vertices of the segment p -> q, each pushed sideways by up to ``jitter``."""
    p, q = np.asarray(p, dtype=float), np.asarray(q, dtype=float)
    t = np.linspace(0.0, 1.0, n + 1)[1:-1]
    pts = p + np.outer(t, q - p)
    normal = np.array([p[1] - q[1], q[0] - p[0]]) / np.hypot(*(q - p))
    return pts + np.outer(rng.uniform(-jitter, jitter, len(t)), normal)


def noisy_grid(nx, ny, size=CELL, n_per_edge=20, jitter=50.0, seed=0):
    """
    Polygons of an nx x ny grid whose edges wobble a few metres off the straight line.

    Neighbouring cells share the exact same edge vertices, so the cells form a clean
    coverage: no overlaps, no gaps. Cells are returned row by row from the origin.
    """
    rng = np.random.default_rng(seed)
    edges = {}

    def edge(a, b):
        key = (min(a, b), max(a, b))
        if key not in edges:
            edges[key] = _noisy_edge(np.multiply(key[0], size), np.multiply(key[1], size),
                                     n_per_edge, jitter, rng)
        return edges[key] if key[0] == a else edges[key][::-1]

    polys = []
    for j in range(ny):
        for i in range(nx):
            corners = [(i, j), (i + 1, j), (i + 1, j + 1), (i, j + 1)]
            ring = []
            for a, b in zip(corners, corners[1:] + corners[:1]):
                ring.append(np.multiply([a], size))
                ring.append(edge(a, b))
            polys.append(Polygon(np.vstack(ring)))
    return polys


@pytest.fixture(autouse=True)
def _close_figures():
    yield
    plt.close("all")


@pytest.fixture()
def ecoregions() -> gpd.GeoDataFrame:
    """Nine touching single-ring regions on a 3 x 3 grid in the Albers projection."""
    polys = noisy_grid(3, 3)
    return gpd.GeoDataFrame(
        {"WSA9": REGION_CODES, "WSA9_NAME": REGION_NAMES},
        geometry=polys,
        crs=ALBERS_CRS,
    )


@pytest.fixture()
def ecoregion_shp(tmp_path: Path, ecoregions: gpd.GeoDataFrame) -> Path:
    path = tmp_path / "ecoregions_9.shp"
    ecoregions.to_file(path)
    return path


@pytest.fixture()
def samples_df() -> pd.DataFrame:
    rng = np.random.default_rng(42)
    n = 1859
    mmi = rng.uniform(0, 100, n)
    mmi_class = np.select([mmi < 40, mmi < 60], ["Poor", "Fair"], "Good")
    return pd.DataFrame({
        "x": rng.uniform(0, 3 * CELL, n),
        "y": rng.uniform(0, 3 * CELL, n),
        "mmi": mmi,
        "mmi_class": mmi_class,
    })


@pytest.fixture()
def samples_csv(tmp_path: Path, samples_df: pd.DataFrame) -> Path:
    path = tmp_path / "samples.csv"
    samples_df.to_csv(path, index=False)
    return path


@pytest.fixture()
def predictions_df() -> pd.DataFrame:
    rng = np.random.default_rng(7)
    n = 5000
    return pd.DataFrame({
        "x": rng.uniform(0, 3 * CELL, n),
        "y": rng.uniform(0, 3 * CELL, n),
        "rfPred": rng.uniform(-5, 100, n),
    })


@pytest.fixture()
def predictions_csv(tmp_path: Path, predictions_df: pd.DataFrame) -> Path:
    path = tmp_path / "predictions.csv"
    predictions_df.to_csv(path, index=False)
    return path
