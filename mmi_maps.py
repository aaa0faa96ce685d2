"""
Description:
    Static map rendering for the MMI report. Every figure is a stack of layers on one
    equal-aspect axes:
        * point layer    : one mark per table row, coloured by score or class
        * boundary layer : one unfilled black path per flattened ecoregion ring
        * theme          : light / dark background, optional bare axes, legend sizing

    Colour scales are either continuous over the data range or clamped to a fixed
    range (MMI_LIMITS), in which case scores beyond the range take the end colour.
"""

from pathlib import Path

import numpy as np
import matplotlib
import matplotlib.pyplot as plt
from matplotlib.colors import Normalize
from matplotlib.lines import Line2D

from mmi_data import MMI_CLASS_ORDER

# --------------------------------------------------
# Scale and style configuration
# --------------------------------------------------
MMI_LIMITS = (0, 80)             # Clamp range for predicted MMI colour scales
DEFAULT_CMAP = "viridis"         # Perceptually uniform sequential scale
BREWER_CMAP = "RdYlBu"           # Diverging brewer palette, red = low MMI

MMI_CLASS_COLORS = {
    "Poor": "#d7191c",
    "Fair": "#fdae61",
    "Good": "#2c7bb6",
}

POINT_SIZE = 8                   # Marker area for the ~2k sample sites
POINT_ALPHA = 0.8
LARGE_POINT_SIZE = 0.05          # Minimum-size marks for the ~1M prediction points
LARGE_POINT_ALPHA = 0.3

THEMES = {
    "light": {"background": "white", "panel": "white", "text": "black", "grid": "#b0b0b0"},
    "dark": {"background": "black", "panel": "black", "text": "white", "grid": "#404040"},
}


def _theme(name):
    if name not in THEMES:
        raise ValueError(f"Unknown theme {name!r}; expected one of {sorted(THEMES)}")
    return THEMES[name]


def build_norm(values, limits=None):
    """
    Normalisation for a continuous colour scale.

    Args:
        values (array-like): Scores to be coloured.
        limits (tuple or None): Fixed (vmin, vmax). Scores outside are clamped to the
            nearest end. None spans the data range.

    Returns:
        Normalize
    """
    if limits is not None:
        vmin, vmax = limits
        return Normalize(vmin=vmin, vmax=vmax, clip=True)
    values = np.asarray(values, dtype=float)
    if values.size == 0:
        return Normalize()
    return Normalize(vmin=np.nanmin(values), vmax=np.nanmax(values))


def scale_colors(values, cmap=DEFAULT_CMAP, limits=MMI_LIMITS):
    """Map scores to RGBA rows with the same scale the point layers use."""
    values = np.asarray(values, dtype=float)
    norm = build_norm(values, limits)
    return matplotlib.colormaps[cmap](norm(values))


def _colorbar_extend(values, limits):
    """Colourbar arrow(s) marking scores clamped at either end of ``limits``."""
    if limits is None or len(values) == 0:
        return "neither"
    below = bool(np.nanmin(values) < limits[0])
    above = bool(np.nanmax(values) > limits[1])
    return {(True, True): "both", (True, False): "min", (False, True): "max"}.get(
        (below, above), "neither"
    )


def add_boundary_layer(ax, boundary, color="black", linewidth=0.5):
    """
    Draw each ``group`` of a flattened boundary table as one unfilled path.

    Returns:
        list: The Line2D artists, one per group, in table order.
    """
    lines = []
    for _, path in boundary.groupby("group", sort=False):
        line, = ax.plot(path["x"].to_numpy(), path["y"].to_numpy(),
                        color=color, linewidth=linewidth)
        lines.append(line)
    return lines


def apply_theme(fig, ax, theme="light", hide_axes=False, legend_fontsize=10, colorbar=None):
    """Background, axis decoration and legend text styling shared by all maps."""
    style = _theme(theme)
    fig.patch.set_facecolor(style["background"])
    ax.set_facecolor(style["panel"])
    ax.title.set_color(style["text"])

    if hide_axes:
        ax.set_xticks([])
        ax.set_yticks([])
        ax.set_xlabel("")
        ax.set_ylabel("")
        ax.grid(False)
        for spine in ax.spines.values():
            spine.set_visible(False)
    else:
        ax.set_xlabel("Easting (m)", color=style["text"])
        ax.set_ylabel("Northing (m)", color=style["text"])
        ax.tick_params(colors=style["text"])
        ax.grid(True, linestyle="--", alpha=0.5, color=style["grid"])
        for spine in ax.spines.values():
            spine.set_edgecolor(style["text"])

    legend = ax.get_legend()
    if legend is not None:
        legend.get_frame().set_facecolor(style["panel"])
        legend.get_frame().set_edgecolor(style["grid"])
        legend.get_title().set_color(style["text"])
        legend.get_title().set_fontsize(legend_fontsize)
        for text in legend.get_texts():
            text.set_color(style["text"])
            text.set_fontsize(legend_fontsize)

    if colorbar is not None:
        colorbar.ax.tick_params(labelsize=legend_fontsize, colors=style["text"])
        colorbar.ax.yaxis.label.set_color(style["text"])
        colorbar.ax.yaxis.label.set_fontsize(legend_fontsize)
        colorbar.outline.set_edgecolor(style["text"])


def draw_score_map(points, value_col, boundary=None, cmap=DEFAULT_CMAP, limits=None,
                   theme="light", hide_axes=False, large=False, title=None,
                   legend_title=None, legend_fontsize=10, figsize=(10, 7),
                   boundary_color="black"):
    """
    Point map coloured by a continuous score.

    Args:
        points (DataFrame): Table with x, y and ``value_col``.
        value_col (str): Score column driving the colour.
        boundary (DataFrame or None): Flattened boundary table to overlay.
        boundary_color (str): Stroke colour of the boundary paths.
        cmap (str): Matplotlib colormap name.
        limits (tuple or None): Clamp range for the colour scale.
        theme (str): "light" or "dark".
        hide_axes (bool): Drop ticks, tick labels, axis labels and gridlines.
        large (bool): Minimum-size, translucent, rasterized marks for dense tables.
        title (str or None): Axes title.
        legend_title (str or None): Colourbar label, defaults to ``value_col``.
        legend_fontsize (int): Colourbar text size.
        figsize (tuple): Figure size in inches.

    Returns:
        tuple: (Figure, Axes)
    """
    values = points[value_col].to_numpy()
    norm = build_norm(values, limits)

    fig, ax = plt.subplots(figsize=figsize)
    sc = ax.scatter(
        points["x"].to_numpy(), points["y"].to_numpy(),
        c=values, cmap=cmap, norm=norm,
        s=LARGE_POINT_SIZE if large else POINT_SIZE,
        alpha=LARGE_POINT_ALPHA if large else POINT_ALPHA,
        linewidths=0,
        rasterized=large,
    )
    if boundary is not None:
        add_boundary_layer(ax, boundary, color=boundary_color)

    cbar = fig.colorbar(sc, ax=ax, shrink=0.7, extend=_colorbar_extend(values, limits))
    cbar.set_label(legend_title or value_col)
    # Equal-area projection: one metre is one metre on both axes
    ax.set_aspect("equal")
    if title:
        ax.set_title(title)
    apply_theme(fig, ax, theme, hide_axes, legend_fontsize, colorbar=cbar)
    return fig, ax


def draw_class_map(samples, class_col="mmi_class", boundary=None, theme="light",
                   hide_axes=False, title=None, legend_title="MMI class",
                   legend_fontsize=10, figsize=(10, 7), boundary_color="black"):
    """Point map of condition classes, one layer per class in Poor/Fair/Good order."""
    fig, ax = plt.subplots(figsize=figsize)
    for level in MMI_CLASS_ORDER:
        subset = samples[samples[class_col] == level]
        ax.scatter(subset["x"].to_numpy(), subset["y"].to_numpy(),
                   color=MMI_CLASS_COLORS[level], s=POINT_SIZE, alpha=POINT_ALPHA,
                   linewidths=0, label=level)
    if boundary is not None:
        add_boundary_layer(ax, boundary, color=boundary_color)

    handles = [
        Line2D([0], [0], marker="o", color=MMI_CLASS_COLORS[level], linestyle="None",
               markersize=7, label=level)
        for level in MMI_CLASS_ORDER
    ]
    ax.legend(handles=handles, title=legend_title, loc="lower left", frameon=True)
    ax.set_aspect("equal")
    if title:
        ax.set_title(title)
    apply_theme(fig, ax, theme, hide_axes, legend_fontsize)
    return fig, ax


def draw_ecoregion_map(boundary, labels=None, theme="light", hide_axes=True, title=None,
                       label_fontsize=9, figsize=(10, 7)):
    """
    Outline map of the ecoregions.

    ``labels`` is an optional table of region_id, x, y; each code is written at its
    point.
    """
    style = _theme(theme)
    fig, ax = plt.subplots(figsize=figsize)
    add_boundary_layer(ax, boundary, color=style["text"])
    if labels is not None:
        for row in labels.itertuples(index=False):
            ax.annotate(str(row.region_id), (row.x, row.y), ha="center", va="center",
                        fontsize=label_fontsize, fontweight="bold", color=style["text"])
    ax.set_aspect("equal")
    if title:
        ax.set_title(title)
    apply_theme(fig, ax, theme, hide_axes)
    return fig, ax


def save_figure(fig, path, dpi=300):
    """Write ``fig`` as a raster image, close it and return the output path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=dpi, facecolor=fig.get_facecolor(), bbox_inches="tight")
    plt.close(fig)
    print(f"[INFO] Saved {path}")
    return path
