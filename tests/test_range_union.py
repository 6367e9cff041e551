from __future__ import annotations

import numpy as np
import pytest

from ordiview.coordinate_model import CoordinateModel, DimensionRanges
from ordiview.range_union import RangeUnion


def _model(name: str, coords) -> CoordinateModel:
    coords = np.asarray(coords, dtype=float)
    dims = coords.shape[1]
    ids = [f"{name}.{i}" for i in range(coords.shape[0])]
    return CoordinateModel(name, ids, coords, [100.0 / dims] * dims)


def test_single_model_union_matches_model_ranges() -> None:
    model = _model("a", [[0, -1, 2], [1, 3, -2]])
    union = RangeUnion([model])

    assert union.dimension_ranges.min == [0.0, -1.0, -2.0]
    assert union.dimension_ranges.max == [1.0, 3.0, 2.0]


def test_union_is_seeded_with_a_copy_not_an_alias() -> None:
    model = _model("a", [[0, -1, 2], [1, 3, -2]])
    union = RangeUnion([model])

    assert union.dimension_ranges.min is not model.dimension_ranges.min
    assert union.dimension_ranges.max is not model.dimension_ranges.max

    union.dimension_ranges.max[0] = 99.0
    assert model.dimension_ranges.max[0] == 1.0


def test_union_over_several_models_is_elementwise() -> None:
    a = _model("a", [[0, 0, 0], [1, 1, 1]])
    b = _model("b", [[-5, 0.5, 0], [0.5, 0.5, 7]])
    c = _model("c", [[0, -2, 0], [2, 0, 0]])
    union = RangeUnion([a, b, c])

    assert union.dimension_ranges.min == [-5.0, -2.0, 0.0]
    assert union.dimension_ranges.max == [2.0, 1.0, 7.0]
    assert union.dimensions == 3
    assert union.models == (a, b, c)


def test_empty_model_list_is_rejected() -> None:
    with pytest.raises(ValueError, match="at least one model"):
        RangeUnion([])


def test_mismatched_dimensions_are_rejected() -> None:
    a = _model("a", [[0, 0, 0], [1, 1, 1]])
    b = _model("b", [[0, 0, 0, 0], [1, 1, 1, 1]])

    with pytest.raises(ValueError, match="same number of dimensions"):
        RangeUnion([a, b])


def test_refresh_picks_up_an_expanded_member_range() -> None:
    a = _model("a", [[0, 0, 0], [1, 1, 1]])
    b = _model("b", [[0, 0, 0], [2, 2, 2]])
    union = RangeUnion([a, b])

    a.dimension_ranges.max[1] = 10.0
    assert union.dimension_ranges.max[1] == 2.0  # stale until refreshed

    union.refresh()
    assert union.dimension_ranges.max == [2.0, 10.0, 2.0]


def test_refresh_keeps_enclosing_union_when_member_shrinks() -> None:
    a = _model("a", [[-3, 0, 0], [1, 1, 1]])
    union = RangeUnion([a])
    before = union.dimension_ranges

    a.dimension_ranges.min[0] = -1.0
    union.refresh()

    assert union.dimension_ranges is before
    assert union.dimension_ranges.min[0] == -3.0
    assert union.dimension_ranges.encloses(a.dimension_ranges)


def test_refresh_never_mutates_members() -> None:
    a = _model("a", [[0, 0, 0], [1, 1, 1]])
    b = _model("b", [[-1, -1, -1], [0, 0, 0]])
    snapshot = (a.dimension_ranges.as_dict(), b.dimension_ranges.as_dict())

    RangeUnion([a, b]).refresh()

    assert (a.dimension_ranges.as_dict(), b.dimension_ranges.as_dict()) == snapshot


def test_dimension_ranges_encloses() -> None:
    outer = DimensionRanges(min=[-1.0, -1.0], max=[1.0, 1.0])

    assert outer.encloses(DimensionRanges(min=[0.0, -1.0], max=[0.5, 1.0]))
    assert not outer.encloses(DimensionRanges(min=[-2.0, 0.0], max=[0.0, 0.0]))
    assert not DimensionRanges().encloses(outer)


def test_union_property_matches_numpy_reduction() -> None:
    hypothesis = pytest.importorskip("hypothesis")
    st = pytest.importorskip("hypothesis.strategies")
    from hypothesis.extra import numpy as hnp

    finite = st.floats(min_value=-1e6, max_value=1e6, allow_nan=False, allow_infinity=False)
    matrices = st.lists(
        hnp.arrays(np.float64, st.tuples(st.integers(1, 5), st.just(3)), elements=finite),
        min_size=1,
        max_size=4,
    )

    @hypothesis.given(mats=matrices)
    def check(mats) -> None:
        models = [_model(f"m{i}", m) for i, m in enumerate(mats)]
        union = RangeUnion(models)
        stacked = np.vstack(mats)
        assert union.dimension_ranges.min == [float(v) for v in stacked.min(axis=0)]
        assert union.dimension_ranges.max == [float(v) for v in stacked.max(axis=0)]
        for model in models:
            assert union.dimension_ranges.encloses(model.dimension_ranges)

    check()
