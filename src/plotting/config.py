"""Immutable chart rendering settings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Tuple

from infra.env import get_env, get_float, get_int, get_str

Color = Tuple[float, float, float, float]

MM_PER_INCH = 25.4


@dataclass(frozen=True)
class RenderConfig:
    """Canvas geometry, palette, fonts and overlay colours for one chart.

    Lengths are in centimetres/millimetres and font sizes in points; the
    renderer converts them to figure units at draw time.
    """

    width_cm: float = 20.0
    height_cm: float = 10.0
    margin_mm: float = 6.0
    dpi: int = 96
    palette: str = "Dark2"
    palette_size: int = 8
    tick_font_size: float = 8.5
    legend_font_size: float = 8.5
    eval_font_size: float = 14.0
    line_width: float = 1.0
    time_format: str = "%H:%M:%S"
    threshold_color: Color = (1.0, 0.0, 0.0, 40 / 255)
    eval_text_color: Color = (0.0, 0.0, 0.0, 150 / 255)
    eval_box_color: Color = (1.0, 1.0, 1.0, 1.0)
    eval_offset_mm: float = 6.0
    eval_padding_mm: float = 1.0
    y_label_room_mm: float = 12.0
    x_label_room_mm: float = 6.0
    legend_room_mm: float = 12.0

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "RenderConfig":
        source = get_env(env)
        defaults = cls()
        return cls(
            width_cm=get_float(source, "CHART_WIDTH_CM", defaults.width_cm),
            height_cm=get_float(source, "CHART_HEIGHT_CM", defaults.height_cm),
            dpi=get_int(source, "CHART_DPI", defaults.dpi),
            palette=get_str(source, "CHART_PALETTE", defaults.palette) or defaults.palette,
        )

    @property
    def figsize(self) -> Tuple[float, float]:
        return self.width_cm * 10 / MM_PER_INCH, self.height_cm * 10 / MM_PER_INCH

    def mm_to_pixels(self, value_mm: float) -> float:
        return value_mm / MM_PER_INCH * self.dpi


__all__ = ["Color", "RenderConfig"]
