"""Top-level public API for the ``ordiview`` package.

Interactive exploration of ordination (PCoA) results in Jupyter:

>>> from ordiview import CoordinateModel, OrdinationSession  # doctest: +SKIP
>>> session = OrdinationSession({"pcoa": model})  # doctest: +SKIP
>>> session  # doctest: +SKIP

Lower-level pieces (views, the range union and the individual controllers)
are exported for custom layouts.
"""

from .axes_controller import AXIS_COMMANDS, AxisCommand, AxisController, ChartStyle
from .controller import ViewController
from .coordinate_model import CoordinateModel, DimensionRanges, Plottable
from .numeric_input import coerce_float, parse_metadata_float
from .range_union import RangeUnion
from .render_view import Marker, MarkerScale, RenderView
from .scale_controller import ScaleBounds, ScaleController
from .session import OrdinationSession
from .view_registry import ViewRegistry, require_registry

__version__ = "0.1.0"

__all__ = [
    "AXIS_COMMANDS",
    "AxisCommand",
    "AxisController",
    "ChartStyle",
    "CoordinateModel",
    "DimensionRanges",
    "Marker",
    "MarkerScale",
    "OrdinationSession",
    "Plottable",
    "RangeUnion",
    "RenderView",
    "ScaleBounds",
    "ScaleController",
    "ViewController",
    "ViewRegistry",
    "coerce_float",
    "parse_metadata_float",
    "require_registry",
]
