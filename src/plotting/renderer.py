"""PNG chart of the series behind an alert, with its threshold overlay."""

from __future__ import annotations

import io
import logging
import math
import re
from datetime import timezone
from typing import List, Sequence, Tuple

import matplotlib
import matplotlib.dates as mdates
from matplotlib.axes import Axes
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure
from matplotlib.patches import Polygon

from alerting.errors import ConversionError, RenderError
from alerting.models import Direction, TimeSeries

from .config import MM_PER_INCH, Color, RenderConfig

# Only show the label part of a series name
_LABEL_TEXT = re.compile(r"\{(.*)\}")
_SINGLE_POINT_PAD_DAYS = 30 / 86400
MM_PER_POINT = MM_PER_INCH / 72

Point = Tuple[float, float]


def legend_label(series: TimeSeries) -> str | None:
    match = _LABEL_TEXT.search(series.label_text())
    if match is None:
        return None
    return match.group(1)


def sample_points(series: TimeSeries) -> Tuple[List[float], List[float]]:
    """Convert samples to (matplotlib date numbers, floats)."""

    xs = [float(value) for value in mdates.date2num(series.sample_times())] if series.samples else []
    ys: List[float] = []
    for timestamp, raw in series.samples:
        try:
            ys.append(float(raw))
        except (TypeError, ValueError) as exc:
            raise ConversionError(f"sample value not float: {raw!r} at {timestamp}") from exc
    return xs, ys


def value_limits(values: Sequence[float], threshold: float) -> Tuple[float, float]:
    """Y range covering every finite value and the threshold, with 5% headroom."""

    finite = [value for value in values if math.isfinite(value)]
    if math.isfinite(threshold):
        finite.append(threshold)
    if not finite:
        return 0.0, 1.0
    low, high = min(finite), max(finite)
    if high == low:
        pad = abs(low) * 0.05 or 1.0
    else:
        pad = (high - low) * 0.05
    return low - pad, high + pad


def threshold_region(
    direction: Direction,
    threshold: float,
    x_limits: Tuple[float, float],
    y_limits: Tuple[float, float],
) -> List[Point]:
    """Polygon, in data coordinates, covering the breached side of ``threshold``."""

    x_min, x_max = x_limits
    edge = y_limits[0] if direction is Direction.LESS else y_limits[1]
    return [(x_min, threshold), (x_max, threshold), (x_max, edge), (x_min, edge)]


class ChartRenderer:
    """Draws one chart per condition; each call owns its own figure."""

    def __init__(self, config: RenderConfig | None = None) -> None:
        self.config = config or RenderConfig()
        self.logger = logging.getLogger("alertgraph.plotting")

    def render(self, series: Sequence[TimeSeries], threshold: float, direction: Direction) -> bytes:
        """Return the chart as PNG bytes."""

        figure = self.draw(series, threshold, direction)
        buffer = io.BytesIO()
        try:
            figure.savefig(buffer, format="png", dpi=self.config.dpi)
        except (ValueError, RuntimeError, OSError) as exc:
            raise RenderError(f"failed to encode chart: {exc}") from exc
        return buffer.getvalue()

    def draw(self, series: Sequence[TimeSeries], threshold: float, direction: Direction) -> Figure:
        if not series:
            raise RenderError("no series to plot")
        points = [sample_points(item) for item in series]
        colors = self._palette()
        figure, axes = self._canvas(legend=len(series) > 1)
        config = self.config

        last_value: float | None = None
        all_x: List[float] = []
        all_y: List[float] = []
        for index, (item, (xs, ys)) in enumerate(zip(series, points)):
            if not xs:
                self.logger.debug("series without samples skipped: %s", item.label_text())
                continue
            label = legend_label(item) if len(series) > 1 else None
            axes.plot(
                xs,
                ys,
                color=colors[index % config.palette_size],
                linewidth=config.line_width,
                label=label or "_nolegend_",
            )
            all_x.extend(xs)
            all_y.extend(ys)
            last_value = ys[-1]
        if last_value is None:
            raise RenderError("series contain no samples")

        x_limits = (min(all_x), max(all_x))
        if x_limits[0] == x_limits[1]:
            x_limits = (x_limits[0] - _SINGLE_POINT_PAD_DAYS, x_limits[1] + _SINGLE_POINT_PAD_DAYS)
        y_limits = value_limits(all_y, threshold)
        axes.set_xlim(*x_limits)
        axes.set_ylim(*y_limits)

        if math.isfinite(threshold):
            region = Polygon(
                threshold_region(direction, threshold, x_limits, y_limits),
                closed=True,
                facecolor=config.threshold_color,
                edgecolor="none",
            )
            axes.add_patch(region)
        else:
            self.logger.warning("threshold %s is not finite, overlay skipped", threshold)

        axes.grid(True)
        axes.xaxis.set_major_locator(mdates.AutoDateLocator())
        axes.xaxis.set_major_formatter(mdates.DateFormatter(config.time_format, tz=timezone.utc))
        axes.tick_params(labelsize=config.tick_font_size)

        handles, _ = axes.get_legend_handles_labels()
        if handles:
            axes.legend(
                loc="lower left",
                bbox_to_anchor=(0.0, 1.0),
                ncol=2,
                fontsize=config.legend_font_size,
                frameon=False,
                borderaxespad=0.2,
            )

        self._annotate(figure, axes, x_limits[1], last_value, y_limits)
        return figure

    def _palette(self) -> List[Color]:
        try:
            cmap = matplotlib.colormaps[self.config.palette]
        except KeyError as exc:
            raise RenderError(f"failed to get color palette: {self.config.palette}") from exc
        if self.config.palette_size <= 0:
            raise RenderError("palette size must be positive")
        if cmap.N > self.config.palette_size:
            # Continuous maps: spread the picks over the whole range
            cmap = cmap.resampled(self.config.palette_size)
        return [cmap(index % cmap.N) for index in range(self.config.palette_size)]

    def _canvas(self, *, legend: bool) -> Tuple[Figure, Axes]:
        config = self.config
        try:
            figure = Figure(figsize=config.figsize, dpi=config.dpi)
            FigureCanvasAgg(figure)
            axes = figure.add_subplot()
        except (ValueError, RuntimeError) as exc:
            raise RenderError(f"failed to create canvas: {exc}") from exc

        width_mm = config.width_cm * 10
        height_mm = config.height_cm * 10
        top_room = config.margin_mm + (config.legend_room_mm if legend else 0.0)
        try:
            figure.subplots_adjust(
                left=(config.margin_mm + config.y_label_room_mm) / width_mm,
                right=1 - config.margin_mm / width_mm,
                bottom=(config.margin_mm + config.x_label_room_mm) / height_mm,
                top=1 - top_room / height_mm,
            )
        except ValueError as exc:
            raise RenderError(f"canvas too small for margins: {exc}") from exc
        return figure, axes

    def _annotate(
        self,
        figure: Figure,
        axes: Axes,
        x_max: float,
        value: float,
        y_limits: Tuple[float, float],
    ) -> None:
        """Place the latest evaluated value near the right edge, at its own height."""

        config = self.config
        anchor_value = value if math.isfinite(value) else y_limits[0]
        anchor_value = min(max(anchor_value, y_limits[0]), y_limits[1])
        x_px, y_px = axes.transData.transform((x_max, anchor_value))
        x_px -= config.mm_to_pixels(config.eval_offset_mm)

        width_px, height_px = figure.bbox.width, figure.bbox.height
        x_frac = min(max(x_px / width_px, 0.0), 1.0)
        y_frac = min(max(y_px / height_px, 0.0), 1.0)
        padding = config.eval_padding_mm / MM_PER_POINT / config.eval_font_size
        figure.text(
            x_frac,
            y_frac,
            f"latest evaluation: {value:.2f}",
            ha="right",
            va="bottom",
            fontsize=config.eval_font_size,
            color=config.eval_text_color,
            bbox={
                "boxstyle": f"square,pad={padding:.3f}",
                "facecolor": config.eval_box_color,
                "edgecolor": "none",
            },
        )


__all__ = [
    "ChartRenderer",
    "legend_label",
    "sample_points",
    "threshold_region",
    "value_limits",
]
