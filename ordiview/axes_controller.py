"""Axes controller: visible dimensions, their order and orientation.

Purpose
-------
:class:`AxisController` owns one active :class:`~ordiview.render_view.RenderView`
from the shared view registry and lets the user choose which three dimensions
are displayed, in which order, and flip the orientation of any dimension.

Concepts and structure
----------------------
- A summary table lists the first, second and third visible axes with their
  percent of variation explained. It is rebuilt, not updated, and must be
  re-rendered after anything that changes ``visible_dimensions``.
- A scree plot (Plotly bar chart) shows every dimension. Clicking a bar binds
  the command menu to that bar; the menu runs one of the tagged commands in
  :data:`AXIS_COMMANDS`.

Examples
--------
>>> controller = AxisController(None, registry)  # doctest: +SKIP
>>> controller.dispatch("assign-first", "PC 4")  # doctest: +SKIP
>>> controller.active_view.visible_dimensions  # doctest: +SKIP
[3, 1, 2]
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import ipywidgets as widgets
import plotly.graph_objects as go

from .controller import ObserverGuard, attach, build_panel
from .render_view import RenderView
from .view_registry import ViewRegistry, first_view_key, require_registry

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

AXIS_NAMES = ("First", "Second", "Third")


@dataclass(frozen=True)
class AxisCommand:
    """One entry of the scree-plot command menu.

    ``position`` is the visible-axis slot an ``assign-*`` command writes, or
    ``None`` for the flip command.
    """

    key: str
    label: str
    position: Optional[int] = None


AXIS_COMMANDS: Dict[str, AxisCommand] = {
    "assign-first": AxisCommand("assign-first", "Set as first axis", 0),
    "assign-second": AxisCommand("assign-second", "Set as second axis", 1),
    "assign-third": AxisCommand("assign-third", "Set as third axis", 2),
    "flip": AxisCommand("flip", "Flip axis orientation"),
}


@dataclass(frozen=True)
class ChartStyle:
    """Visual options for the scree plot."""

    bar_color: str = "steelblue"
    selected_color: str = "teal"
    height_px: int = 260


def axis_label(dimension: int) -> str:
    """Return the bar label of a zero-based dimension (``0 -> "PC 1"``)."""
    return f"PC {dimension + 1}"


def dimension_from_label(name: str) -> int:
    """Return the zero-based dimension of a bar label (``"PC 3" -> 2``)."""
    return int(name.split(" ")[1]) - 1


class AxisController:
    """Control the visible axes of the active view.

    Parameters
    ----------
    container : ipywidgets.Box or None
        Box the controller panel is appended to. ``None`` leaves the panel
        detached; use :meth:`render` later.
    registry : dict[str, RenderView]
        Shared view registry. Held by reference; the first key becomes the
        active view.
    style : ChartStyle, optional
        Scree plot styling.
    on_change : callable, optional
        Called with no arguments after a command or a restore has changed
        the active view (the render request).

    Raises
    ------
    ValueError
        If the registry is ``None`` or empty.
    TypeError
        If the registry holds anything but ``RenderView`` objects.
    """

    title = "Axes"
    help_text = "Change the visible dimensions of the data"

    def __init__(
        self,
        container: Optional[widgets.Box],
        registry: ViewRegistry,
        *,
        style: Optional[ChartStyle] = None,
        on_change: Optional[Callable[[], None]] = None,
    ) -> None:
        self.registry = require_registry(registry)
        self.active_view_key = first_view_key(self.registry)
        self.style = style or ChartStyle()
        self.on_change = on_change

        self.table: Optional[widgets.HTML] = None
        self.chart: Optional[go.FigureWidget] = None
        self.selected_axis: Optional[str] = None
        self._guard = ObserverGuard()

        self._header = widgets.VBox(layout=widgets.Layout(width="100%"))
        self._chart_box = widgets.Box(layout=widgets.Layout(width="100%", min_width="0"))
        self._menu_label = widgets.HTML(value="")
        self._menu_buttons: Dict[str, widgets.Button] = {}
        for command in AXIS_COMMANDS.values():
            button = widgets.Button(description=command.label, layout=widgets.Layout(width="auto"))
            button.on_click(lambda _btn, key=command.key: self._on_menu_button(key))
            self._menu_buttons[command.key] = button
        self.menu = widgets.VBox(
            [self._menu_label, widgets.HBox(list(self._menu_buttons.values()))],
            layout=widgets.Layout(display="none"),
        )
        self.widget = build_panel(
            self.title, self.help_text, self._header, self._chart_box, self.menu
        )

        self.render_summary_table()
        self.render_variance_chart()
        attach(container, self.widget)

    # ------------------------------------------------------------------
    # Active view
    # ------------------------------------------------------------------

    @property
    def active_view(self) -> RenderView:
        return self.registry[self.active_view_key]

    def set_active_view(self, key: str) -> None:
        """Make ``key`` the active view and rebuild table and chart."""
        if key not in self.registry:
            raise KeyError(f"Unknown view: {key}")
        if key == self.active_view_key:
            return
        self._activate(key)
        self._notify()

    def _activate(self, key: str) -> None:
        self.active_view_key = key
        self._close_menu()
        self.render_summary_table()
        self.render_variance_chart()

    # ------------------------------------------------------------------
    # Summary table
    # ------------------------------------------------------------------

    def summary_rows(self) -> List[tuple[str, str]]:
        """Return ``(axis name, "PC i - p%")`` for the three visible axes."""
        view = self.active_view
        percents = view.model.percent_explained
        return [
            (f"{AXIS_NAMES[index]} Axis", f"{axis_label(dim)} - {percents[dim]:.2f}%")
            for index, dim in enumerate(view.visible_dimensions)
        ]

    def render_summary_table(self) -> widgets.HTML:
        """Discard the previous table and build a fresh one."""
        if self.table is not None:
            self.table.close()

        cells = "".join(
            f"<tr><td style='text-align:left'>{html.escape(name)}</td>"
            f"<td style='text-align:right'>{html.escape(text)}</td></tr>"
            for name, text in self.summary_rows()
        )
        self.table = widgets.HTML(
            value=f"<table style='width:100%'>{cells}</table>",
            layout=widgets.Layout(width="100%", margin="0 0 8px 0"),
        )
        self._header.children = (self.table,)
        return self.table

    # ------------------------------------------------------------------
    # Scree plot
    # ------------------------------------------------------------------

    def render_variance_chart(self) -> go.FigureWidget:
        """Discard the previous chart and build one for the active view."""
        if self.chart is not None:
            self.chart.close()

        percents = [float(p) for p in self.active_view.model.percent_explained]
        labels = [axis_label(index) for index in range(len(percents))]

        chart = go.FigureWidget(
            data=[
                go.Bar(
                    x=labels,
                    y=percents,
                    marker_color=[self.style.bar_color] * len(labels),
                    hovertemplate="%{x}: %{y:.2f}%<extra></extra>",
                )
            ]
        )
        chart.update_layout(
            title={"text": "Scree Plot", "x": 0.5},
            height=self.style.height_px,
            margin={"l": 50, "r": 10, "t": 40, "b": 40},
            showlegend=False,
            xaxis={"type": "category"},
            yaxis={"title": {"text": "% Variation Explained"}, "rangemode": "tozero"},
        )
        chart.data[0].on_click(self._on_bar_click)

        self.chart = chart
        self._chart_box.children = (chart,)
        return chart

    def _on_bar_click(self, trace: Any, points: Any, _selector: Any = None) -> None:
        """Bind the command menu to the clicked bar."""
        indices = list(getattr(points, "point_inds", []) or [])
        if not indices:
            return
        name = str(trace.x[indices[0]])
        self.selected_axis = name
        self._menu_label.value = f"<b>{html.escape(name)}</b>"
        self.menu.layout.display = "flex"
        if self.chart is not None:
            colors = [
                self.style.selected_color if label == name else self.style.bar_color
                for label in self.chart.data[0].x
            ]
            self.chart.data[0].marker.color = colors

    def _on_menu_button(self, key: str) -> None:
        if self._guard.active or self.selected_axis is None:
            return
        with self._guard.suspended():
            self.dispatch(key, self.selected_axis)
        self._close_menu()

    def _close_menu(self) -> None:
        self.selected_axis = None
        self.menu.layout.display = "none"
        if self.chart is not None:
            self.chart.data[0].marker.color = [self.style.bar_color] * len(self.chart.data[0].x)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def dispatch(self, command: str, name: str) -> None:
        """Run a tagged command from :data:`AXIS_COMMANDS` on the bar ``name``."""
        if command not in AXIS_COMMANDS:
            raise KeyError(f"Unknown axis command: {command}")
        entry = AXIS_COMMANDS[command]
        logger.debug("axis command %s on %s (view=%s)", command, name, self.active_view_key)
        if entry.position is None:
            self.flip_axis(name)
        else:
            self.update_visible_axes(name, entry.position)
            self.render_summary_table()
        self._notify()

    def update_visible_axes(self, name: str, position: int) -> None:
        """Show the dimension labelled ``name`` at ``position`` (0, 1 or 2).

        The other positions are left alone, so the same dimension can end up
        on two axes.
        """
        view = self.active_view
        dimensions = list(view.visible_dimensions)
        dimensions[position] = dimension_from_label(name)
        view.change_visible_dimensions(dimensions)

    def flip_axis(self, name: str) -> None:
        """Flip the orientation of the dimension labelled ``name``."""
        self.active_view.flip_axis_orientation(dimension_from_label(name))

    # ------------------------------------------------------------------
    # ViewController
    # ------------------------------------------------------------------

    def render(self, container: widgets.Box) -> None:
        attach(container, self.widget)

    def to_json(self) -> Dict[str, Any]:
        view = self.active_view
        return {
            "viewKey": self.active_view_key,
            "visibleDimensions": list(view.visible_dimensions),
            "flippedAxes": [
                dim for dim, sign in enumerate(view.axes_orientation) if sign < 0
            ],
        }

    def from_json(self, json: Dict[str, Any]) -> None:
        """Restore the active view, its visible dimensions and flipped axes.

        Every field is checked against the target view before anything is
        changed, so a rejected state leaves the controller as it was.
        """
        target_key = self.active_view_key
        key = json.get("viewKey")
        if key is not None:
            if key in self.registry:
                target_key = key
            else:
                logger.warning("Ignoring unknown view key %r in axes state", key)
        view = self.registry[target_key]

        dimensions = json.get("visibleDimensions")
        if dimensions is not None:
            dimensions = view.check_visible_dimensions(dimensions)
        flipped = json.get("flippedAxes")
        wanted = None
        if flipped is not None:
            wanted = {view.check_dimension(dim) for dim in flipped}

        if target_key != self.active_view_key:
            self._activate(target_key)
        if dimensions is not None:
            view.change_visible_dimensions(dimensions)
        if wanted is not None:
            for dim, sign in enumerate(view.axes_orientation):
                if (sign < 0) != (dim in wanted):
                    view.flip_axis_orientation(dim)

        self.render_summary_table()
        self._notify()

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change()
