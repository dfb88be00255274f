"""Alert chart rendering."""

from .config import RenderConfig
from .renderer import ChartRenderer

__all__ = ["ChartRenderer", "RenderConfig"]
