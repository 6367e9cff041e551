"""Marker scaling by metadata category.

:class:`ScaleController` derives a per-sample scale factor from a chosen
metadata category and applies it uniformly (x, y and z) to every marker of
every view in the shared registry. Its state serializes to a flat JSON object::

    {"category": str | None, "globalScale": str, "scaleVal": bool,
     "data": {<metadata value>: <factor>, ...}}

``from_json(to_json())`` reproduces the same marker scales.
"""

from __future__ import annotations

import html
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import ipywidgets as widgets

from .controller import ObserverGuard, attach, build_panel
from .coordinate_model import Plottable
from .numeric_input import coerce_float, parse_metadata_float
from .render_view import RenderView
from .view_registry import ViewRegistry, require_registry

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

DEFAULT_FACTOR = 1.0
DEFAULT_GLOBAL_SCALE = "1.0"


@dataclass(frozen=True)
class ScaleBounds:
    """Display bounds the numeric range of a category is remapped onto."""

    lower: float = 1.0
    upper: float = 5.0

    def __post_init__(self) -> None:
        if self.lower < 0:
            raise ValueError(f"ScaleBounds lower ({self.lower}) must not be negative")
        if self.lower > self.upper:
            raise ValueError(
                f"ScaleBounds lower ({self.lower}) must not exceed upper ({self.upper})"
            )


def non_negative_scale(value: Any, what: str = "Scale") -> float:
    """Coerce ``value`` to a finite float that can size a marker.

    Raises
    ------
    ValueError
        If ``value`` is not a finite number or is negative.
    """
    number = coerce_float(value)
    if number < 0:
        raise ValueError(f"{what} must not be negative, got {value!r}")
    return number


@dataclass
class ScaleRow:
    """Widgets of one row of the per-value table."""

    value: str
    container: widgets.HBox
    label: widgets.HTML
    factor: widgets.FloatText

    def close(self) -> None:
        self.factor.unobserve_all()
        self.factor.close()
        self.label.close()
        self.container.close()


class ScaleController:
    """Scale markers in every view by a metadata category.

    Parameters
    ----------
    container : ipywidgets.Box or None
        Box the controller panel is appended to.
    registry : dict[str, RenderView]
        Shared view registry, held by reference.
    bounds : ScaleBounds, optional
        Target range for value-based scaling.
    on_change : callable, optional
        Called with no arguments after marker scales changed.

    Raises
    ------
    ValueError
        If the registry is ``None`` or empty.
    TypeError
        If the registry holds anything but ``RenderView`` objects.
    """

    title = "Scale"
    help_text = "Change the size of the attributes on the plot"
    grid_columns = ("value", "scale")

    def __init__(
        self,
        container: Optional[widgets.Box],
        registry: ViewRegistry,
        *,
        bounds: Optional[ScaleBounds] = None,
        on_change: Optional[Callable[[], None]] = None,
    ) -> None:
        self.registry = require_registry(registry)
        self.bounds = bounds or ScaleBounds()
        self.on_change = on_change

        self._category: Optional[str] = None
        self._scale_by_value = False
        self._global_scale = DEFAULT_GLOBAL_SCALE
        self._data: Dict[str, float] = {}
        self._guard = ObserverGuard()
        self.rows: Dict[str, ScaleRow] = {}

        options: List[tuple[str, Optional[str]]] = [("(none)", None)]
        options += [(header, header) for header in self.categories()]
        self.select = widgets.Dropdown(
            options=options,
            value=None,
            description="Category",
            layout=widgets.Layout(width="100%"),
        )
        self.scaled_value = widgets.Checkbox(
            value=False,
            description="Change according to values",
            indent=False,
        )
        self.global_slider = widgets.FloatSlider(
            value=coerce_float(self._global_scale),
            min=0.1,
            max=5.0,
            step=0.1,
            description="Global",
            continuous_update=False,
        )
        self.grid = widgets.VBox(layout=widgets.Layout(width="100%"))

        self.select.observe(self._on_select_changed, names="value")
        self.scaled_value.observe(self._on_scaled_changed, names="value")
        self.global_slider.observe(self._on_global_changed, names="value")

        self.widget = build_panel(
            self.title,
            self.help_text,
            self.select,
            self.scaled_value,
            self.global_slider,
            self.grid,
        )
        attach(container, self.widget)

    # ------------------------------------------------------------------
    # Registry helpers
    # ------------------------------------------------------------------

    def views(self) -> List[RenderView]:
        """Return the distinct views of the registry in insertion order."""
        seen: Dict[int, RenderView] = {}
        for view in self.registry.values():
            seen.setdefault(id(view), view)
        return list(seen.values())

    def categories(self) -> List[str]:
        """Return the union of metadata headers across views."""
        headers: Dict[str, None] = {}
        for view in self.views():
            for header in view.model.metadata_headers:
                headers.setdefault(header, None)
        return list(headers)

    def category_values(self, category: str) -> List[str]:
        """Return the distinct values of ``category`` across every view."""
        values: Dict[str, None] = {}
        for view in self.views():
            if view.model.has_category(category):
                for value in view.model.unique_values_by_category(category):
                    values.setdefault(value, None)
        return list(values)

    # ------------------------------------------------------------------
    # Category selection
    # ------------------------------------------------------------------

    def get_metadata_field(self) -> Optional[str]:
        return self._category

    def set_metadata_field(self, category: Optional[str]) -> None:
        """Select the metadata column driving the marker scales.

        ``None`` disables category scaling and resets every marker to ``1.0``.
        """
        self._category = category
        if category is None:
            self._data = {}
        else:
            self._data = self.get_scale(self.category_values(category), self._scale_by_value)
        self._apply_data()
        self._sync_widgets()
        self._notify()

    def set_scale_by_value(self, scaled: bool) -> None:
        """Switch between uniform and value-derived factors."""
        self._scale_by_value = bool(scaled)
        self.set_metadata_field(self._category)

    def set_global_scale(self, value: Any) -> None:
        """Set the multiplier applied on top of every marker factor.

        Raises
        ------
        ValueError
            If ``value`` is not a finite number or is negative.
        """
        number = non_negative_scale(value, "Global scale")
        self._global_scale = value.strip() if isinstance(value, str) else str(float(number))
        for view in self.views():
            view.global_scale = number
            view.needs_update = True
        self._sync_widgets()
        self._notify()

    def set_value_factor(self, value: str, factor: Any) -> None:
        """Override the factor of one metadata value of the active category.

        Raises
        ------
        ValueError
            If no category is selected, or ``factor`` is not a finite
            non-negative number.
        """
        if self._category is None:
            raise ValueError("No metadata category is selected")
        number = non_negative_scale(factor, f"Scale factor for {value!r}")
        self._data[str(value)] = number
        for view in self.views():
            self.set_plottable_attributes(
                view,
                number,
                view.model.plottables_by_metadata_value(self._category, str(value)),
            )
        row = self.rows.get(str(value))
        if row is None:
            self._sync_widgets()
        elif row.factor.value != number:
            with self._guard.suspended():
                row.factor.value = number
        self._notify()

    # ------------------------------------------------------------------
    # Scale computation
    # ------------------------------------------------------------------

    def get_scale(self, values: Sequence[str], scaled: bool) -> Dict[str, float]:
        """Map each distinct value to a scale factor.

        With ``scaled=False`` every value maps to ``1.0``. With ``scaled=True``
        values that do not parse as finite floats map to ``0.0`` and the
        parseable ones are remapped linearly from their observed range onto
        ``self.bounds``; a single distinct number maps to the lower bound.
        """
        distinct = list(dict.fromkeys(str(v) for v in values))
        if not scaled:
            return {value: DEFAULT_FACTOR for value in distinct}

        parsed = {value: parse_metadata_float(value) for value in distinct}
        numbers = [number for number in parsed.values() if number is not None]
        if not numbers:
            return {value: 0.0 for value in distinct}

        low, high = min(numbers), max(numbers)
        span = high - low
        scale: Dict[str, float] = {}
        for value, number in parsed.items():
            if number is None:
                scale[value] = 0.0
            elif span == 0:
                scale[value] = self.bounds.lower
            else:
                scale[value] = self.bounds.lower + (number - low) / span * (
                    self.bounds.upper - self.bounds.lower
                )
        return scale

    @staticmethod
    def set_plottable_attributes(
        view: RenderView, factor: float, plottables: Iterable[Plottable]
    ) -> None:
        """Set the scale of each referenced marker to ``factor`` on all axes."""
        for plottable in plottables:
            view.markers[plottable.idx].scale.set_uniform(factor)
        view.needs_update = True

    def _apply_data(self) -> None:
        for view in self.views():
            self.set_plottable_attributes(view, DEFAULT_FACTOR, view.model.plottables)
            if self._category is None:
                continue
            for value, factor in self._data.items():
                plottables = view.model.plottables_by_metadata_value(self._category, value)
                if plottables:
                    self.set_plottable_attributes(view, factor, plottables)

    # ------------------------------------------------------------------
    # Widgets
    # ------------------------------------------------------------------

    def _sync_widgets(self) -> None:
        with self._guard.suspended():
            option_values = [value for _label, value in self.select.options]
            target = self._category if self._category in option_values else None
            if self.select.value != target:
                self.select.value = target
            if self.scaled_value.value != self._scale_by_value:
                self.scaled_value.value = self._scale_by_value
            try:
                slider_value = coerce_float(self._global_scale)
            except ValueError:
                slider_value = None
            if slider_value is not None:
                slider_value = min(max(slider_value, self.global_slider.min), self.global_slider.max)
                if self.global_slider.value != slider_value:
                    self.global_slider.value = slider_value
            self._build_grid()

    def _build_grid(self) -> None:
        for row in self.rows.values():
            row.close()
        self.rows = {}
        for value, factor in self._data.items():
            field = widgets.FloatText(value=factor, layout=widgets.Layout(width="90px"))
            field.observe(
                lambda change, v=value: self._on_factor_changed(v, change), names="value"
            )
            label = widgets.HTML(
                value=html.escape(value), layout=widgets.Layout(width="100%")
            )
            self.rows[value] = ScaleRow(
                value=value,
                container=widgets.HBox([label, field], layout=widgets.Layout(width="100%")),
                label=label,
                factor=field,
            )
        self.grid.children = tuple(row.container for row in self.rows.values())

    def _on_select_changed(self, change: Dict[str, Any]) -> None:
        if self._guard.active:
            return
        self.set_metadata_field(change.get("new"))

    def _on_scaled_changed(self, change: Dict[str, Any]) -> None:
        if self._guard.active:
            return
        self.set_scale_by_value(bool(change.get("new")))

    def _on_global_changed(self, change: Dict[str, Any]) -> None:
        if self._guard.active:
            return
        self.set_global_scale(str(change.get("new")))

    def _on_factor_changed(self, value: str, change: Dict[str, Any]) -> None:
        if self._guard.active:
            return
        try:
            self.set_value_factor(value, change.get("new"))
        except ValueError as exc:
            logger.warning("Rejected scale factor edit: %s", exc)
            with self._guard.suspended():
                self.rows[value].factor.value = change.get("old")

    # ------------------------------------------------------------------
    # ViewController
    # ------------------------------------------------------------------

    def render(self, container: widgets.Box) -> None:
        attach(container, self.widget)

    def to_json(self) -> Dict[str, Any]:
        return {
            "category": self._category,
            "globalScale": self._global_scale,
            "scaleVal": self._scale_by_value,
            "data": dict(self._data) if self._category is not None else {},
        }

    def from_json(self, json: Dict[str, Any]) -> None:
        """Restore state; ``data`` factors are applied as-is, never re-derived.

        Unknown categories or values are accepted and simply match no marker.
        Every field is parsed before any state changes, so a rejected state
        leaves the controller and the views as they were.

        Raises
        ------
        ValueError
            If a ``data`` factor or ``globalScale`` is negative, or a factor
            is not a finite number.
        """
        category = json.get("category")
        scale_by_value = bool(json.get("scaleVal", False))
        data: Dict[str, float] = {}
        if category is not None:
            data = {
                str(k): non_negative_scale(v, f"Scale factor for {k!r}")
                for k, v in (json.get("data") or {}).items()
            }
        global_scale = str(json.get("globalScale", DEFAULT_GLOBAL_SCALE))
        try:
            number: Optional[float] = coerce_float(global_scale)
        except ValueError:
            logger.warning("Ignoring non-numeric globalScale %r", global_scale)
            number = None
        if number is not None and number < 0:
            raise ValueError(f"Global scale must not be negative, got {global_scale!r}")

        if category is not None and category not in self.categories():
            logger.warning("Scale state names unknown category %r; no marker matches", category)
        self._category = category
        self._scale_by_value = scale_by_value
        self._data = data
        self._global_scale = global_scale
        if number is not None:
            for view in self.views():
                view.global_scale = number
                view.needs_update = True

        logger.debug("restoring scale state category=%r values=%d", category, len(data))
        self._apply_data()
        self._sync_widgets()
        self._notify()

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change()
