"""
Description:
    Builds the NRSA macroinvertebrate MMI map report: loads the observed sample and
    predicted MMI tables, loads and simplifies the nine aggregated ecoregions, checks
    that all three share the Albers projection, and writes the sequence of static maps.

Inputs:
    - Data/nrsa_mmi_samples.csv      : Observed sites (x, y, mmi, mmi_class)
    - Data/nrsa_mmi_predictions.csv  : Predicted MMI on the stream network (x, y, rfPred)
    - Data/ecoregions_9/ecoregions_9.shp :
        Aggregated ecoregion polygons with WSA9 / WSA9_NAME attributes

Parameters:
    - SIMPLIFY_TOLERANCE : Boundary simplification tolerance (m)
    - MMI_LIMITS         : Clamp range for predicted MMI colour scales
    - DPI                : Raster resolution of the saved maps

Outputs (in OUTPUT_DIR):
    - 01_ecoregions.png             : Simplified ecoregion outlines with codes
    - 02_observed_mmi.png           : Observed MMI, continuous viridis scale
    - 03_observed_mmi_class.png     : Observed condition class
    - 04_predicted_mmi.png          : Predicted MMI, viridis clamped to 0-80, dark theme
    - 05_predicted_mmi_brewer.png   : Predicted MMI, RdYlBu clamped to 0-80
"""

from pathlib import Path

import matplotlib

matplotlib.use("Agg")  # Files only, no display

from mmi_data import load_samples, load_predictions
from ecoregion_geometry import (
    ALBERS_CRS,
    REGION_ID_FIELD,
    REGION_NAME_FIELD,
    SIMPLIFY_TOLERANCE,
    check_crs,
    ecoregion_label_points,
    flatten_ecoregions,
    load_ecoregions,
    simplify_ecoregions,
)
from mmi_maps import (
    BREWER_CMAP,
    DEFAULT_CMAP,
    MMI_LIMITS,
    draw_class_map,
    draw_ecoregion_map,
    draw_score_map,
    save_figure,
)

# --------------------------------------------------
# Configuration: Input file paths and parameters
# --------------------------------------------------
SAMPLE_CSV      = "Data/nrsa_mmi_samples.csv"
PREDICTION_CSV  = "Data/nrsa_mmi_predictions.csv"
ECOREGION_PATH  = "Data/ecoregions_9/ecoregions_9.shp"
TABLE_CRS       = ALBERS_CRS     # CRS the x / y columns of both tables were exported in
OUTPUT_DIR      = "figures"
DPI             = 300


def run_report(sample_csv=SAMPLE_CSV, prediction_csv=PREDICTION_CSV,
               ecoregion_path=ECOREGION_PATH, out_dir=OUTPUT_DIR, table_crs=TABLE_CRS,
               id_field=REGION_ID_FIELD, name_field=REGION_NAME_FIELD,
               tolerance=SIMPLIFY_TOLERANCE, limits=MMI_LIMITS, dpi=DPI):
    """
    Run the report once, top to bottom.

    Returns:
        list[Path]: Saved map images, in report order.
    """
    out_dir = Path(out_dir)

    # === Step 1: Load point tables ===
    samples = load_samples(sample_csv)
    predictions = load_predictions(prediction_csv)

    # === Step 2: Load ecoregions and check they line up with the tables ===
    regions = load_ecoregions(ecoregion_path, id_field=id_field, name_field=name_field)
    check_crs(table_crs, regions.crs, label=f"ecoregions ({ecoregion_path})")

    # === Step 3: Simplify and flatten boundaries ===
    simplified = simplify_ecoregions(regions, tolerance=tolerance)
    del regions
    boundary = flatten_ecoregions(simplified, id_field=id_field)
    labels = ecoregion_label_points(simplified, id_field=id_field, name_field=name_field)

    # === Step 4: Render maps ===
    saved = []

    fig, _ = draw_ecoregion_map(boundary, labels=labels, title="Aggregated ecoregions")
    saved.append(save_figure(fig, out_dir / "01_ecoregions.png", dpi=dpi))

    fig, _ = draw_score_map(
        samples, "mmi", boundary=boundary, cmap=DEFAULT_CMAP,
        title="Observed MMI", legend_title="MMI",
    )
    saved.append(save_figure(fig, out_dir / "02_observed_mmi.png", dpi=dpi))

    fig, _ = draw_class_map(
        samples, "mmi_class", boundary=boundary, title="Observed MMI condition class",
    )
    saved.append(save_figure(fig, out_dir / "03_observed_mmi_class.png", dpi=dpi))

    fig, _ = draw_score_map(
        predictions, "rfPred", boundary=boundary, cmap=DEFAULT_CMAP, limits=limits,
        theme="dark", hide_axes=True, large=True, boundary_color="white",
        title="Predicted MMI", legend_title="Predicted MMI", legend_fontsize=12,
    )
    saved.append(save_figure(fig, out_dir / "04_predicted_mmi.png", dpi=dpi))

    fig, _ = draw_score_map(
        predictions, "rfPred", boundary=boundary, cmap=BREWER_CMAP, limits=limits,
        theme="light", hide_axes=True, large=True,
        title="Predicted MMI", legend_title="Predicted MMI", legend_fontsize=12,
    )
    saved.append(save_figure(fig, out_dir / "05_predicted_mmi_brewer.png", dpi=dpi))

    return saved


if __name__ == "__main__":
    paths = run_report()
    print("✅ Report complete:")
    for p in paths:
        print(f"   {p}")
