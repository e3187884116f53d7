"""
mpl_render.py
-------------

Matplotlib adapter for CurveBatch output.

The tessellation core only produces points, groups, and per-point values.
This module decides how to draw them:

    batch_to_path(batch) -> mplPath

        One compound Path: MOVETO per group, LINETO afterwards, CLOSEPOLY for
        closed boundaries (circles, arc-bars, closed b-splines).

    batch_to_line_collection(batch, color=None, linewidth=None, alpha=None,
                             cmap="viridis") -> LineCollection

        One segment per consecutive point pair, styled from the segment start
        point, so interpolated attributes render as smooth gradients.

    draw_batch(ax, batch, gradient=True, arrow=False, fill=None, ...) -> list[Artist]

        Adds either the gradient LineCollection or one PathPatch per group to
        ``ax``, optionally with arrow heads at the curve ends.

Style arguments (``color``, ``linewidth``, ``alpha``) are either the name of
an attribute column in the batch or a literal value. Numeric color columns are
mapped through ``cmap``.
"""

from __future__ import annotations

__all__ = ["batch_to_path", "batch_to_line_collection", "draw_batch"]

from typing import Any, Optional, Union

import numpy as np
from numpy.typing import NDArray
from matplotlib import colors as mcolors
from matplotlib import colormaps
from matplotlib.artist import Artist
from matplotlib.axes import Axes
from matplotlib.collections import LineCollection
from matplotlib.patches import FancyArrowPatch, PathPatch
from matplotlib.path import Path as mplPath

from .batch import CurveBatch
from .sampler import SampledCurve, end_tangent

DEFAULT_COLOR = "black"
DEFAULT_LINEWIDTH = 1.0
ARROW_FRACTION = 0.01


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
def _curve_path_parts(curve: SampledCurve) -> tuple[NDArray[np.float64], list[int]]:
    verts = curve.points
    codes = [mplPath.MOVETO] + [mplPath.LINETO] * (len(verts) - 1)
    if curve.closed:
        verts = np.vstack([verts, verts[:1]])
        codes.append(mplPath.CLOSEPOLY)
    return verts, codes


def batch_to_path(batch: CurveBatch) -> mplPath:
    """Join every curve of ``batch`` into one compound Matplotlib Path."""
    if not isinstance(batch, CurveBatch):
        raise TypeError(f"Expected a CurveBatch, got {type(batch).__name__}.")
    if not batch.groups:
        return mplPath(np.empty((0, 2)))

    verts_list, codes_list = [], []
    for _, curve, _ in batch.split():
        verts, codes = _curve_path_parts(curve)
        verts_list.append(verts)
        codes_list.extend(codes)
    return mplPath(np.concatenate(verts_list), np.asarray(codes_list, dtype=mplPath.code_type))


# ---------------------------------------------------------------------------
# Style resolution
# ---------------------------------------------------------------------------
def _column(attributes: dict[str, NDArray], style: Any) -> Optional[NDArray]:
    if isinstance(style, str) and style in attributes:
        return attributes[style]
    return None


def _rgba(attributes: dict[str, NDArray], color: Any, n: int, cmap: str) -> NDArray[np.float64]:
    column = _column(attributes, color)
    if column is None:
        return np.tile(mcolors.to_rgba(DEFAULT_COLOR if color is None else color), (n, 1))
    if column.ndim == 2:
        return np.asarray(column, dtype=float)
    if column.dtype == object:
        bad = [v for v in column if not mcolors.is_color_like(v)]
        if bad:
            raise ValueError(
                f"Column {color!r} cannot be used as a color: {bad[0]!r} is not a color."
            )
        return mcolors.to_rgba_array(list(column))
    values = np.asarray(column, dtype=float)
    norm = mcolors.Normalize(vmin=np.nanmin(values), vmax=np.nanmax(values))
    return colormaps[cmap](norm(values))


def _numeric(attributes: dict[str, NDArray], style: Any, n: int, default: float) -> NDArray[np.float64]:
    column = _column(attributes, style)
    if column is None:
        return np.full(n, default if style is None else float(style))
    return np.asarray(column, dtype=float)


def _styles(attributes: dict[str, NDArray], n: int, color: Any, linewidth: Any,
            alpha: Any, cmap: str) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    rgba = _rgba(attributes, color, n, cmap)
    if alpha is not None:
        rgba = rgba.copy()
        rgba[:, 3] = np.clip(_numeric(attributes, alpha, n, 1.0), 0.0, 1.0)
    return rgba, _numeric(attributes, linewidth, n, DEFAULT_LINEWIDTH)


# ---------------------------------------------------------------------------
# Gradient segments
# ---------------------------------------------------------------------------
def batch_to_line_collection(
        batch     : CurveBatch,
        color     : Any                     = None,
        linewidth : Union[str, float, None] = None,
        alpha     : Union[str, float, None] = None,
        cmap      : str                     = "viridis",
        **kwargs  : Any,
    ) -> LineCollection:
    """Build a per-segment LineCollection carrying interpolated styles.

    Args:
        batch: Sampled batch.
        color: Attribute name or literal color. Numeric columns go through
            ``cmap``.
        linewidth: Attribute name or literal width in points.
        alpha: Attribute name or literal opacity; overrides the color alpha.
        cmap: Colormap name for numeric color columns.
        **kwargs: Forwarded to ``LineCollection``.

    Returns:
        LineCollection with ``len(batch) - len(groups)`` segments (plus one
        closing segment per closed curve).
    """
    if not isinstance(batch, CurveBatch):
        raise TypeError(f"Expected a CurveBatch, got {type(batch).__name__}.")

    rgba, widths = _styles(batch.attributes, len(batch), color, linewidth, alpha, cmap)

    points = batch.points
    segments, seg_colors, seg_widths = [], [], []
    for i in range(len(batch.groups)):
        lo, hi = int(batch.offsets[i]), int(batch.offsets[i + 1])
        pts = points[lo:hi]
        starts = np.arange(lo, hi - 1)
        if batch.closed[i] and hi - lo > 1 and not np.array_equal(pts[0], pts[-1]):
            pts = np.vstack([pts, pts[:1]])
            starts = np.append(starts, hi - 1)
        if len(pts) < 2:
            continue
        segments.append(np.stack([pts[:-1], pts[1:]], axis=1))
        seg_colors.append(rgba[starts])
        seg_widths.append(widths[starts])

    if not segments:
        return LineCollection([], **kwargs)

    return LineCollection(
        np.concatenate(segments),
        colors=np.concatenate(seg_colors),
        linewidths=np.concatenate(seg_widths),
        **kwargs,
    )


# ---------------------------------------------------------------------------
# Axes helper
# ---------------------------------------------------------------------------
def _arrow(curve: SampledCurve, rgba: NDArray[np.float64], width: float) -> Optional[FancyArrowPatch]:
    tangent = end_tangent(curve)
    if not tangent.any():
        return None
    points = curve.points
    extent = float(np.hypot(*np.ptp(points, axis=0))) or 1.0
    tip = points[-1]
    return FancyArrowPatch(
        posA=tuple(tip - tangent * extent * ARROW_FRACTION),
        posB=tuple(tip),
        arrowstyle="-|>",
        mutation_scale=10 + 2 * width,
        shrinkA=0,
        shrinkB=0,
        color=tuple(rgba),
        linewidth=width,
    )


def draw_batch(
        ax        : Axes,
        batch     : CurveBatch,
        gradient  : bool                    = True,
        arrow     : bool                    = False,
        fill      : Any                     = None,
        color     : Any                     = None,
        linewidth : Union[str, float, None] = None,
        alpha     : Union[str, float, None] = None,
        cmap      : str                     = "viridis",
    ) -> list[Artist]:
    """Draw ``batch`` on ``ax`` and return the artists added.

    With ``gradient=True`` the curves become a single LineCollection styled
    per segment. Otherwise each group becomes a PathPatch styled from its
    first point; ``fill`` sets the face color of closed shapes.
    """
    if not isinstance(ax, Axes):
        raise TypeError(f"ax must be a Matplotlib Axes, not {type(ax).__name__}")

    artists: list[Artist] = []
    if gradient:
        lc = batch_to_line_collection(batch, color=color, linewidth=linewidth, alpha=alpha, cmap=cmap)
        ax.add_collection(lc)
        artists.append(lc)

    rgba, widths = _styles(batch.attributes, len(batch), color, linewidth, alpha, cmap)
    for i, (_, curve, _) in enumerate(batch.split()):
        if len(curve) == 0:
            continue
        first = int(batch.offsets[i])
        last = int(batch.offsets[i + 1]) - 1
        if not gradient:
            verts, codes = _curve_path_parts(curve)
            patch = PathPatch(
                mplPath(verts, codes),
                facecolor=fill if (fill is not None and curve.closed) else "none",
                edgecolor=tuple(rgba[first]),
                linewidth=widths[first],
            )
            ax.add_patch(patch)
            artists.append(patch)
        if arrow and not curve.closed:
            head = _arrow(curve, rgba[last], widths[last])
            if head is not None:
                ax.add_patch(head)
                artists.append(head)

    ax.autoscale_view()
    return artists
