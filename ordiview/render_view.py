"""Renderable projection of one :class:`CoordinateModel`.

A :class:`RenderView` tracks which three of the model's ``d`` dimensions are
on screen, the orientation of every axis and a per-sample :class:`Marker`
whose ``scale`` vector controllers mutate. Whenever rendered state changes the
view sets ``needs_update``; the render step consumes the flag with
:meth:`RenderView.consume_update`.

Views are shared by reference through a view registry. A write by one
controller is visible to every other holder of the view on its next access.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import List

import numpy as np
import plotly.graph_objects as go

from .coordinate_model import CoordinateModel


@dataclass
class MarkerScale:
    """Mutable three-component scale vector of a marker."""

    x: float = 1.0
    y: float = 1.0
    z: float = 1.0

    def set_uniform(self, factor: float) -> None:
        self.x = self.y = self.z = float(factor)

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)


@dataclass
class Marker:
    """Render proxy for one sample."""

    name: str
    position: tuple[float, float, float]
    scale: MarkerScale = field(default_factory=MarkerScale)
    visible: bool = True


class RenderView:
    """Mutable render state for one model.

    Parameters
    ----------
    model : CoordinateModel
        The dataset this view projects.
    base_marker_size : float
        Plotly marker size for a marker at scale ``1.0`` and global scale ``1.0``.
    """

    def __init__(self, model: CoordinateModel, *, base_marker_size: float = 6.0) -> None:
        if not isinstance(model, CoordinateModel):
            raise TypeError(
                f"RenderView expects a CoordinateModel, got {type(model).__name__}"
            )
        if model.dimensions < 3:
            raise ValueError(
                f"Model '{model.name}' has {model.dimensions} dimensions; "
                "at least 3 are required for a 3D view"
            )
        self.model = model
        self.base_marker_size = float(base_marker_size)
        self.visible_dimensions: List[int] = [0, 1, 2]
        self.axes_orientation: List[int] = [1] * model.dimensions
        self.global_scale = 1.0
        self.markers: List[Marker] = [
            Marker(name=sid, position=(0.0, 0.0, 0.0)) for sid in model.sample_ids
        ]
        self.needs_update = True
        self._update_positions()

    def __repr__(self) -> str:
        return (
            f"RenderView(model={self.model.name!r}, "
            f"visible_dimensions={self.visible_dimensions!r})"
        )

    def change_visible_dimensions(self, dimensions: Sequence[int]) -> None:
        """Display ``dimensions`` as the first, second and third axes.

        Duplicate indices are accepted; the view then shows the same
        dimension on more than one axis.

        Raises
        ------
        ValueError
            If ``dimensions`` does not hold exactly three in-range indices.
        """
        self.visible_dimensions = self.check_visible_dimensions(dimensions)
        self._update_positions()

    def check_visible_dimensions(self, dimensions: Sequence[int]) -> List[int]:
        """Return ``dimensions`` as a list of ints, or raise without mutating."""
        dims = [int(d) for d in dimensions]
        if len(dims) != 3:
            raise ValueError(f"Exactly 3 visible dimensions are required, got {dims!r}")
        for dim in dims:
            self.check_dimension(dim)
        return dims

    def check_dimension(self, dimension: int) -> int:
        dim = int(dimension)
        if not 0 <= dim < self.model.dimensions:
            raise ValueError(
                f"Dimension {dim} is out of range for model '{self.model.name}' "
                f"with {self.model.dimensions} dimensions"
            )
        return dim

    def flip_axis_orientation(self, dimension: int) -> None:
        """Invert the sign of ``dimension`` in every rendered position."""
        dim = self.check_dimension(dimension)
        self.axes_orientation[dim] *= -1
        self._update_positions()

    def marker_positions(self) -> np.ndarray:
        """Return the ``n x 3`` on-screen positions with orientation applied."""
        dims = self.visible_dimensions
        signs = np.asarray([self.axes_orientation[d] for d in dims], dtype=float)
        return self.model.coordinates[:, dims] * signs

    def marker_sizes(self) -> np.ndarray:
        return np.asarray(
            [self.base_marker_size * m.scale.x * self.global_scale for m in self.markers],
            dtype=float,
        )

    def consume_update(self) -> bool:
        """Return and clear the dirty flag."""
        dirty = self.needs_update
        self.needs_update = False
        return dirty

    def to_trace(self) -> go.Scatter3d:
        """Build a Plotly ``Scatter3d`` trace of the visible markers."""
        positions = self.marker_positions()
        visible = np.asarray([m.visible for m in self.markers], dtype=bool)
        return go.Scatter3d(
            x=positions[visible, 0],
            y=positions[visible, 1],
            z=positions[visible, 2],
            mode="markers",
            name=self.model.name,
            text=[m.name for m, keep in zip(self.markers, visible) if keep],
            marker={"size": self.marker_sizes()[visible]},
            hoverinfo="text",
        )

    def _update_positions(self) -> None:
        for marker, row in zip(self.markers, self.marker_positions()):
            marker.position = (float(row[0]), float(row[1]), float(row[2]))
        self.needs_update = True
