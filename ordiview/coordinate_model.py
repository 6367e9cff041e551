"""Coordinate-space models for ordination results.

Purpose
-------
A :class:`CoordinateModel` holds one ordination dataset for the lifetime of a
session: sample identifiers, an ``n x d`` coordinate matrix, the percent of
variation explained by each dimension, per-dimension ranges and a metadata
table keyed by sample id.

Concepts and structure
----------------------
- ``DimensionRanges`` is the mutable ``{min, max}`` pair shared in shape by a
  model and by :class:`ordiview.range_union.RangeUnion`.
- ``Plottable`` is a lightweight per-sample record (name, row index,
  coordinates, metadata) used by controllers to address markers.

Examples
--------
>>> model = CoordinateModel(
...     "pcoa",
...     ["a", "b"],
...     [[0.1, -0.2, 0.3], [-0.1, 0.2, 0.0]],
...     [50.0, 30.0, 20.0],
...     ["SampleID", "Treatment"],
...     [["a", "Control"], ["b", "Fast"]],
... )
>>> model.dimensions
3
>>> model.unique_values_by_category("Treatment")
['Control', 'Fast']
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np


@dataclass
class DimensionRanges:
    """Per-dimension ``min``/``max`` bounds.

    Parameters
    ----------
    min : list[float]
        Lower bound for each dimension.
    max : list[float]
        Upper bound for each dimension.
    """

    min: List[float] = field(default_factory=list)
    max: List[float] = field(default_factory=list)

    def __post_init__(self) -> None:
        if len(self.min) != len(self.max):
            raise ValueError(
                f"Range bounds must have the same length, got {len(self.min)} "
                f"minima and {len(self.max)} maxima"
            )

    def __len__(self) -> int:
        return len(self.max)

    def copy(self) -> "DimensionRanges":
        """Return a detached copy; the lists are never shared."""
        return DimensionRanges(min=list(self.min), max=list(self.max))

    def encloses(self, other: "DimensionRanges") -> bool:
        """Return whether every bound of ``other`` lies inside these ranges."""
        if len(self) == 0 or len(other) != len(self):
            return False
        for g_min, g_max, l_min, l_max in zip(self.min, self.max, other.min, other.max):
            if not (g_min <= l_min <= g_max) or not (g_min <= l_max <= g_max):
                return False
        return True

    def as_dict(self) -> Dict[str, List[float]]:
        return {"min": list(self.min), "max": list(self.max)}


@dataclass(frozen=True)
class Plottable:
    """One sample as seen by controllers.

    ``idx`` is the row of the sample in the model, which is also the index of
    its marker in every view of that model.
    """

    name: str
    idx: int
    coordinates: tuple[float, ...]
    metadata: Dict[str, str]


class CoordinateModel:
    """One ordination dataset (samples embedded in ``d`` dimensions).

    Parameters
    ----------
    name : str
        Identifier of the dataset, e.g. ``"pcoa"`` or ``"biplot"``.
    sample_ids : Sequence[str]
        Sample identifiers; the order defines the row order.
    coordinates : array-like
        ``n x d`` coordinate matrix, one row per sample.
    percent_explained : Sequence[float]
        Percent of variation explained by each of the ``d`` dimensions.
    metadata_headers : Sequence[str]
        Metadata column names. The first column holds the sample id.
    metadata : Sequence[Sequence[str]]
        Metadata rows, one per sample, first cell being the sample id.

    Raises
    ------
    ValueError
        If ids are duplicated, shapes disagree, or metadata rows are malformed.
    """

    def __init__(
        self,
        name: str,
        sample_ids: Sequence[str],
        coordinates: Any,
        percent_explained: Sequence[float],
        metadata_headers: Sequence[str] = (),
        metadata: Sequence[Sequence[Any]] = (),
    ) -> None:
        self.name = str(name)
        self.sample_ids: List[str] = [str(sid) for sid in sample_ids]
        if len(set(self.sample_ids)) != len(self.sample_ids):
            raise ValueError(f"Model '{self.name}' has duplicated sample ids")

        coords = np.asarray(coordinates, dtype=float)
        if coords.ndim != 2 or coords.shape[0] != len(self.sample_ids):
            raise ValueError(
                f"Model '{self.name}' expects a {len(self.sample_ids)} x d coordinate "
                f"matrix, got shape {coords.shape}"
            )
        self.coordinates = coords
        self.dimensions = int(coords.shape[1])

        pct = np.asarray(percent_explained, dtype=float)
        if pct.shape != (self.dimensions,):
            raise ValueError(
                f"Model '{self.name}' has {self.dimensions} dimensions but "
                f"{pct.size} percent-explained values"
            )
        self.percent_explained = pct

        if self.dimensions and coords.shape[0]:
            self.dimension_ranges = DimensionRanges(
                min=[float(v) for v in coords.min(axis=0)],
                max=[float(v) for v in coords.max(axis=0)],
            )
        else:
            self.dimension_ranges = DimensionRanges(
                min=[0.0] * self.dimensions, max=[0.0] * self.dimensions
            )

        self.metadata_headers: List[str] = [str(h) for h in metadata_headers]
        self.metadata: Dict[str, Dict[str, str]] = {
            sid: {} for sid in self.sample_ids
        }
        for row in metadata:
            if len(row) != len(self.metadata_headers):
                raise ValueError(
                    f"Metadata row {list(row)!r} has {len(row)} cells, expected "
                    f"{len(self.metadata_headers)}"
                )
            sid = str(row[0])
            if sid not in self.metadata:
                raise ValueError(f"Metadata row for unknown sample '{sid}'")
            self.metadata[sid] = {
                header: str(cell) for header, cell in zip(self.metadata_headers, row)
            }

        self.plottables: List[Plottable] = [
            Plottable(
                name=sid,
                idx=idx,
                coordinates=tuple(float(v) for v in coords[idx]),
                metadata=self.metadata[sid],
            )
            for idx, sid in enumerate(self.sample_ids)
        ]

    def __len__(self) -> int:
        return len(self.sample_ids)

    def __repr__(self) -> str:
        return (
            f"CoordinateModel(name={self.name!r}, samples={len(self)}, "
            f"dimensions={self.dimensions})"
        )

    def has_category(self, category: Optional[str]) -> bool:
        return category is not None and category in self.metadata_headers

    def metadata_value(self, sample_id: str, category: str) -> Optional[str]:
        """Return the metadata cell of ``sample_id`` under ``category``, if any."""
        return self.metadata.get(sample_id, {}).get(category)

    def unique_values_by_category(self, category: str) -> List[str]:
        """Return the distinct values of ``category`` in first-seen row order."""
        if not self.has_category(category):
            raise KeyError(f"Unknown metadata category: {category}")
        seen: Dict[str, None] = {}
        for sid in self.sample_ids:
            value = self.metadata[sid].get(category)
            if value is not None:
                seen.setdefault(value, None)
        return list(seen)

    def plottables_by_metadata_value(self, category: str, value: str) -> List[Plottable]:
        """Return every plottable whose ``category`` cell equals ``value``."""
        if not self.has_category(category):
            return []
        return [p for p in self.plottables if p.metadata.get(category) == value]
