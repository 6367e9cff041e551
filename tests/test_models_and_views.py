from __future__ import annotations

import numpy as np
import plotly.graph_objects as go
import pytest

from ordiview.coordinate_model import CoordinateModel
from ordiview.render_view import RenderView
from ordiview.view_registry import first_view_key, require_registry


def test_model_derives_ranges_and_plottables(pcoa_model) -> None:
    assert pcoa_model.dimensions == 8
    assert len(pcoa_model) == 3
    assert pcoa_model.dimension_ranges.min[0] == pytest.approx(-0.276542)
    assert pcoa_model.dimension_ranges.max[0] == pytest.approx(-0.237661)
    assert [p.idx for p in pcoa_model.plottables] == [0, 1, 2]
    assert pcoa_model.plottables[1].metadata["Treatment"] == "Fast"


def test_model_metadata_lookups(pcoa_model) -> None:
    assert pcoa_model.unique_values_by_category("DOB") == ["20070314", "20071112"]
    assert [p.name for p in pcoa_model.plottables_by_metadata_value("Treatment", "Fast")] == [
        "PC.635",
        "PC.634",
    ]
    assert pcoa_model.plottables_by_metadata_value("Nope", "x") == []
    assert pcoa_model.metadata_value("PC.636", "Mixed") == "14.2"
    with pytest.raises(KeyError):
        pcoa_model.unique_values_by_category("Nope")


@pytest.mark.parametrize(
    "kwargs, message",
    [
        ({"sample_ids": ["a", "a"]}, "duplicated"),
        ({"coordinates": [[0, 0, 0]]}, "coordinate"),
        ({"percent_explained": [50.0, 50.0]}, "percent-explained"),
        ({"metadata": [["a", "x", "extra"]]}, "cells"),
        ({"metadata": [["zzz", "x"]]}, "unknown sample"),
    ],
)
def test_model_construction_errors(kwargs, message) -> None:
    args = {
        "name": "m",
        "sample_ids": ["a", "b"],
        "coordinates": [[0, 0, 0], [1, 1, 1]],
        "percent_explained": [50.0, 30.0, 20.0],
        "metadata_headers": ["SampleID", "Group"],
        "metadata": [["a", "x"], ["b", "y"]],
    }
    args.update(kwargs)
    with pytest.raises(ValueError, match=message):
        CoordinateModel(**args)


def test_view_defaults(pcoa_model) -> None:
    view = RenderView(pcoa_model)

    assert view.visible_dimensions == [0, 1, 2]
    assert view.axes_orientation == [1] * 8
    assert all(m.scale.as_tuple() == (1.0, 1.0, 1.0) for m in view.markers)
    assert view.consume_update() is True
    assert view.consume_update() is False


def test_view_change_visible_dimensions(pcoa_model) -> None:
    view = RenderView(pcoa_model)
    view.consume_update()
    dims = [4, 2, 2]

    view.change_visible_dimensions(dims)
    dims[0] = 0

    assert view.visible_dimensions == [4, 2, 2]
    assert view.needs_update is True
    assert view.markers[0].position == pytest.approx((0.176070, 0.066647, 0.066647))


@pytest.mark.parametrize("dims", [[0, 1], [0, 1, 2, 3], [0, 1, 8], [-1, 0, 1]])
def test_view_rejects_invalid_visible_dimensions(pcoa_model, dims) -> None:
    view = RenderView(pcoa_model)
    with pytest.raises(ValueError):
        view.change_visible_dimensions(dims)


def test_view_requires_three_dimensions() -> None:
    model = CoordinateModel("flat", ["a"], [[0.0, 1.0]], [60.0, 40.0])
    with pytest.raises(ValueError, match="at least 3"):
        RenderView(model)


def test_view_trace_uses_scales(pcoa_model) -> None:
    view = RenderView(pcoa_model, base_marker_size=4.0)
    view.markers[1].scale.set_uniform(2.0)
    view.global_scale = 0.5

    trace = view.to_trace()

    assert isinstance(trace, go.Scatter3d)
    assert list(trace.marker.size) == [2.0, 4.0, 2.0]
    assert np.allclose(trace.x, pcoa_model.coordinates[:, 0])


def test_registry_validation(registry) -> None:
    assert require_registry(registry) is registry
    assert first_view_key(registry) == "scatter"
    with pytest.raises(TypeError):
        require_registry([("scatter", registry["scatter"])])
