"""Union of per-dimension ranges over several coordinate models.

``RangeUnion`` composes models that share a coordinate space (same number of
dimensions) and derives the elementwise union of their ranges. Widgets that
must span every dataset at once (scene axes, normalization for parallel
plots) read ``dimension_ranges`` from here.

The union is not live. Callers must call :meth:`RangeUnion.refresh` after an
upstream range change and tolerate a stale union in between.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .coordinate_model import CoordinateModel, DimensionRanges

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


class RangeUnion:
    """Elementwise range union of models sharing a dimension count.

    Parameters
    ----------
    models : Sequence[CoordinateModel]
        Member models. Membership is fixed after construction.

    Raises
    ------
    ValueError
        If ``models`` is empty or the models disagree on ``dimensions``.
    """

    def __init__(self, models: Sequence[CoordinateModel]) -> None:
        members = tuple(models)
        if not members:
            raise ValueError("RangeUnion requires at least one model")
        first = members[0]
        for model in members[1:]:
            if model.dimensions != first.dimensions:
                raise ValueError(
                    "Underlying models must have same number of dimensions: "
                    f"'{first.name}' has {first.dimensions}, "
                    f"'{model.name}' has {model.dimensions}"
                )
        self._models = members
        self.dimension_ranges = DimensionRanges()
        self.refresh()

    @property
    def models(self) -> tuple[CoordinateModel, ...]:
        return self._models

    @property
    def dimensions(self) -> int:
        return self._models[0].dimensions

    def refresh(self) -> None:
        """Recompute ``dimension_ranges`` unless every member is already enclosed.

        A member range that shrank keeps the previous (wider) union; the
        enclosure invariant still holds.
        """
        if all(self.dimension_ranges.encloses(m.dimension_ranges) for m in self._models):
            return

        logger.debug("Recomputing range union over %d models", len(self._models))
        ranges = self._models[0].dimension_ranges.copy()
        for model in self._models[1:]:
            for index, (v_min, v_max) in enumerate(
                zip(model.dimension_ranges.min, model.dimension_ranges.max)
            ):
                if v_max > ranges.max[index]:
                    ranges.max[index] = v_max
                if v_min < ranges.min[index]:
                    ranges.min[index] = v_min
        self.dimension_ranges = ranges
