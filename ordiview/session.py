"""One document: models, shared views, range union and controllers.

``OrdinationSession`` wires the pieces together the way a notebook front end
uses them:

- one :class:`RenderView` per model in a single shared registry,
- a :class:`RangeUnion` over every model for the scene axes,
- an :class:`AxisController` and a :class:`ScaleController` that both hold
  the same registry,
- a Plotly 3D scene refreshed from the views' dirty flags.

The whole-document state is the JSON object ``{"axes": ..., "scale": ...}``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Dict, List, Optional

import ipywidgets as widgets
import plotly.graph_objects as go
from IPython.display import display

from .axes_controller import AxisController, ChartStyle, axis_label
from .controller import ViewController
from .coordinate_model import CoordinateModel
from .range_union import RangeUnion
from .render_view import RenderView
from .scale_controller import ScaleBounds, ScaleController
from .view_registry import ViewRegistry

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


class OrdinationSession:
    """Interactive session over one or more ordination models.

    Parameters
    ----------
    models : Mapping[str, CoordinateModel]
        Models keyed by view key. Insertion order picks the first view.
    base_marker_size : float
        Marker size at scale ``1.0``.
    chart_style : ChartStyle, optional
        Scree plot styling forwarded to the axes controller.
    scale_bounds : ScaleBounds, optional
        Value-scaling bounds forwarded to the scale controller.

    Raises
    ------
    ValueError
        If ``models`` is empty or the models do not share a dimension count.
    """

    def __init__(
        self,
        models: Mapping[str, CoordinateModel],
        *,
        base_marker_size: float = 6.0,
        chart_style: Optional[ChartStyle] = None,
        scale_bounds: Optional[ScaleBounds] = None,
    ) -> None:
        if not models:
            raise ValueError("OrdinationSession requires at least one model")
        self.models: Dict[str, CoordinateModel] = dict(models)
        self.registry: ViewRegistry = {
            key: RenderView(model, base_marker_size=base_marker_size)
            for key, model in self.models.items()
        }
        self.range_union = RangeUnion(list(self.models.values()))

        self.axes = AxisController(
            None, self.registry, style=chart_style, on_change=self.refresh_scene
        )
        self.scale = ScaleController(
            None, self.registry, bounds=scale_bounds, on_change=self.refresh_scene
        )
        self.controllers: Dict[str, ViewController] = {
            "axes": self.axes,
            "scale": self.scale,
        }

        self.scene = go.FigureWidget(
            data=[view.to_trace() for view in self.registry.values()]
        )
        self.scene.update_layout(
            margin={"l": 0, "r": 0, "t": 0, "b": 0},
            legend={"orientation": "h"},
            scene={"aspectmode": "cube"},
        )
        self._trace_index = {key: index for index, key in enumerate(self.registry)}
        for view in self.registry.values():
            view.consume_update()
        self._update_scene_axes()

        tabs = widgets.Tab(children=[c.widget for c in self.controllers.values()])
        for index, controller in enumerate(self.controllers.values()):
            tabs.set_title(index, controller.title)
        self._tabs = tabs
        self._root = widgets.HBox(
            [
                widgets.Box([self.scene], layout=widgets.Layout(flex="3 1 0%", min_width="0")),
                widgets.Box([tabs], layout=widgets.Layout(flex="1 1 0%", min_width="280px")),
            ],
            layout=widgets.Layout(width="100%"),
        )

    @property
    def widget(self) -> widgets.HBox:
        return self._root

    def _ipython_display_(self) -> None:
        """Display the session layout in a notebook."""
        display(self._root)

    # ------------------------------------------------------------------
    # Scene
    # ------------------------------------------------------------------

    def refresh_scene(self) -> List[str]:
        """Push dirty views into the scene, re-derive its axes, return dirty keys."""
        dirty = [key for key, view in self.registry.items() if view.needs_update]
        # Dirty flags are cleared only once every dirty view has produced a trace.
        traces = {key: self.registry[key].to_trace() for key in dirty}
        for key in dirty:
            self.registry[key].consume_update()
        self.range_union.refresh()
        with self.scene.batch_update():
            for key, fresh in traces.items():
                trace = self.scene.data[self._trace_index[key]]
                trace.x = fresh.x
                trace.y = fresh.y
                trace.z = fresh.z
                trace.text = fresh.text
                trace.marker.size = fresh.marker.size
            self._update_scene_axes()
        if dirty:
            logger.debug("scene refreshed for views %s", dirty)
        return dirty

    def scene_axis_ranges(self) -> List[tuple[float, float]]:
        """Return the displayed ``(low, high)`` range of the three scene axes.

        Ranges come from the range union so every model fits; a flipped
        dimension gets its range mirrored.
        """
        view = self.axes.active_view
        ranges = self.range_union.dimension_ranges
        out = []
        for dim in view.visible_dimensions:
            low, high = ranges.min[dim], ranges.max[dim]
            if view.axes_orientation[dim] < 0:
                low, high = -high, -low
            out.append((low, high))
        return out

    def _update_scene_axes(self) -> None:
        view = self.axes.active_view
        axes = {}
        for name, dim, bounds in zip(
            ("xaxis", "yaxis", "zaxis"), view.visible_dimensions, self.scene_axis_ranges()
        ):
            pct = float(view.model.percent_explained[dim])
            axes[name] = {
                "title": {"text": f"{axis_label(dim)} ({pct:.2f} %)"},
                "range": list(bounds),
            }
        self.scene.update_layout(scene=axes)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def to_json(self) -> Dict[str, Any]:
        return {name: controller.to_json() for name, controller in self.controllers.items()}

    def from_json(self, state: Mapping[str, Any]) -> None:
        """Restore every controller present in ``state``; others are untouched."""
        for name, controller in self.controllers.items():
            if name in state:
                controller.from_json(state[name])
            else:
                logger.debug("no saved state for controller %s", name)
        self.refresh_scene()

    def dumps(self, **kwargs: Any) -> str:
        return json.dumps(self.to_json(), **kwargs)

    def loads(self, text: str) -> None:
        self.from_json(json.loads(text))
