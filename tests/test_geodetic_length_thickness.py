import math

import pytest

from pyroi.data.roi_registry import FeatureTable, RoiRecord
from pyroi.engine.core.errors import MissingDependency
from pyroi.engine.core.methods.geodetic_length_thickness import GeodeticLengthThicknessFeature
from pyroi.features.feature_names import AREA_PIXELS_COUNT, GEODETIC_LENGTH, PERIMETER, THICKNESS


def _record(area, perimeter):
    record = RoiRecord(label=1)
    record.fvals[AREA_PIXELS_COUNT] = [area]
    record.fvals[PERIMETER] = [perimeter]
    return record


def _compute(area, perimeter):
    method = GeodeticLengthThicknessFeature()
    method.calculate(_record(area, perimeter))
    table = FeatureTable()
    method.save_value(table)
    return table.scalar(GEODETIC_LENGTH), table.scalar(THICKNESS)


def test_square_ribbon():
    assert _compute(100, 40) == (pytest.approx(10.0), pytest.approx(10.0))


def test_elongated_ribbon():
    length, thickness = _compute(50, 60)
    assert length == pytest.approx(28.2288, abs=1e-4)
    assert thickness == pytest.approx(1.7712, abs=1e-4)


def test_negative_radicand_is_clamped():
    # L^2/16 - A = 1 - 10 < 0
    length, thickness = _compute(10, 4)
    assert length == pytest.approx(1.0)
    assert thickness == pytest.approx(1.0)
    assert not math.isnan(length)


@pytest.mark.parametrize("area,perimeter", [(100, 40), (50, 60), (10, 4), (37, 31.5)])
def test_length_and_thickness_sum_to_half_perimeter(area, perimeter):
    length, thickness = _compute(area, perimeter)
    assert length + thickness == pytest.approx(perimeter / 2)


def test_missing_dependency_is_fatal():
    record = RoiRecord(label=3)
    record.fvals[AREA_PIXELS_COUNT] = [10]
    with pytest.raises(MissingDependency, match="perimeter"):
        GeodeticLengthThicknessFeature().calculate(record)


def test_streaming_path_matches_dense(loader):
    record = _record(50, 60)
    method = GeodeticLengthThicknessFeature()
    method.osized_calculate(record, loader)
    assert method.geodetic_length == pytest.approx(28.2288, abs=1e-4)
    assert not method.bad_roi_data
