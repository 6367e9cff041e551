from __future__ import annotations

import sys
from pathlib import Path

import pytest

_REPO_ROOT = Path(__file__).resolve().parent.parent
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from ordiview.coordinate_model import CoordinateModel  # noqa: E402
from ordiview.render_view import RenderView  # noqa: E402

PCT_VAR = [
    26.6887048633, 16.2563704022, 13.7754129161, 11.217215823,
    10.024774995, 8.22835130237, 7.55971173665, 6.24945796136,
]


@pytest.fixture
def pcoa_model() -> CoordinateModel:
    return CoordinateModel(
        "pcoa",
        ["PC.636", "PC.635", "PC.634"],
        [
            [-0.276542, -0.144964, 0.066647, -0.067711, 0.176070, 0.072969, -0.229889, -0.046599],
            [-0.237661, 0.046053, -0.138136, 0.159061, -0.247485, -0.115211, -0.112864, 0.064794],
            [-0.237661, 0.046053, -0.138136, 0.159061, -0.247485, -0.115211, -0.112864, 0.064794],
        ],
        PCT_VAR,
        ["SampleID", "Mixed", "Treatment", "DOB"],
        [
            ["PC.636", "14.2", "Control", "20070314"],
            ["PC.635", "StringValue", "Fast", "20071112"],
            ["PC.634", "14.7", "Fast", "20071112"],
        ],
    )


@pytest.fixture
def biplot_model() -> CoordinateModel:
    return CoordinateModel(
        "biplot",
        ["tax_1", "tax_2"],
        [
            [-1, -0.144964, 0.066647, -0.067711, 0.176070, 0.072969, -0.229889, -0.046599],
            [-0.237661, 0.046053, -0.138136, 0.159061, -0.247485, -0.115211, -0.112864, 0.064794],
        ],
        PCT_VAR,
        ["SampleID", "Gram"],
        [["tax_1", "1"], ["tax_2", "0"]],
    )


@pytest.fixture
def registry(pcoa_model: CoordinateModel, biplot_model: CoordinateModel) -> dict[str, RenderView]:
    return {"scatter": RenderView(pcoa_model), "biplot": RenderView(biplot_model)}
