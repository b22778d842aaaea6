import pytest

from pyroi.config.settings import BAD_ROI_FVAL
from pyroi.data.roi_registry import RoiRecord
from pyroi.engine.core.base_feature_method import FeatureMethod
from pyroi.engine.core.errors import (
    CyclicDependency,
    FeatureConfigurationError,
    MissingDependency,
    UnresolvedDependency,
)
from pyroi.engine.core.feature_manager import FeatureManager
from pyroi.engine.core.methods import GeodeticLengthThicknessFeature, NGTDMFeatures
from pyroi.features.feature_names import AREA_PIXELS_COUNT, PERIMETER


class ProvidesX(FeatureMethod, register=False):
    NAME = "A"
    PROVIDES = ("x",)
    DEPENDS = (AREA_PIXELS_COUNT,)

    def calculate(self, record):
        self.value = self.require(record, AREA_PIXELS_COUNT)[0] * 2

    def save_value(self, table):
        table["x"] = [self.value]


class ProvidesY(FeatureMethod, register=False):
    NAME = "B"
    PROVIDES = ("y",)
    DEPENDS = ("x",)

    def calculate(self, record):
        self.value = self.require(record, "x")[0] + 1

    def save_value(self, table):
        table["y"] = [self.value]


class ProvidesZ(FeatureMethod, register=False):
    PROVIDES = ("z",)

    def calculate(self, record):
        pass

    def save_value(self, table):
        table["z"] = [0.5]


class CycleP(FeatureMethod, register=False):
    PROVIDES = ("p",)
    DEPENDS = ("q",)


class CycleQ(FeatureMethod, register=False):
    PROVIDES = ("q",)
    DEPENDS = ("p",)


class DuplicateX(FeatureMethod, register=False):
    PROVIDES = ("x",)


class NeedsUnknown(FeatureMethod, register=False):
    PROVIDES = ("w",)
    DEPENDS = ("nope",)


def _record(label=1, area=6):
    record = RoiRecord(label=label)
    record.fvals[AREA_PIXELS_COUNT] = [area]
    record.fvals[PERIMETER] = [10.0]
    return record


def test_dependency_runs_first_regardless_of_list_order():
    manager = FeatureManager(methods=[ProvidesY, ProvidesX])
    assert manager.order == [ProvidesX, ProvidesY]


def test_ready_methods_keep_registration_order():
    manager = FeatureManager(methods=[ProvidesZ, ProvidesX, ProvidesY])
    assert manager.order == [ProvidesZ, ProvidesX, ProvidesY]
    assert manager.provided_features() == ["z", "x", "y"]


def test_dependency_graph_edges():
    manager = FeatureManager(methods=[ProvidesX, ProvidesY])
    assert manager.dependency_graph[AREA_PIXELS_COUNT] == {"x"}
    assert manager.dependency_graph["x"] == {"y"}
    assert manager.dependency_graph["y"] == set()


def test_cycle_is_rejected():
    with pytest.raises(CyclicDependency) as exc_info:
        FeatureManager(methods=[CycleP, CycleQ])
    assert exc_info.value.members == ["p", "q"]
    assert isinstance(exc_info.value, FeatureConfigurationError)


def test_unresolved_dependency_is_rejected():
    with pytest.raises(UnresolvedDependency, match="nope"):
        FeatureManager(methods=[NeedsUnknown])


def test_duplicate_provider_is_rejected():
    with pytest.raises(FeatureConfigurationError, match="provided by both"):
        FeatureManager(methods=[ProvidesX, DuplicateX])


def test_feature_selection_keeps_transitive_dependencies():
    manager = FeatureManager(methods=[ProvidesZ, ProvidesX, ProvidesY], features=["y"])
    assert manager.order == [ProvidesX, ProvidesY]

    manager = FeatureManager(methods=[ProvidesZ, ProvidesX, ProvidesY], features=["x"])
    assert manager.order == [ProvidesX]


def test_unknown_feature_selection_is_rejected():
    with pytest.raises(FeatureConfigurationError, match="not provided"):
        FeatureManager(methods=[ProvidesX], features=["missing"])


def test_compute_feeds_dependents():
    manager = FeatureManager(methods=[ProvidesY, ProvidesX])
    record = _record(area=6)

    manager.compute(record)

    assert record.fvals["x"] == [12.0]
    assert record.fvals["y"] == [13.0]


def test_compute_is_idempotent():
    manager = FeatureManager(methods=[ProvidesX, ProvidesY])
    record = _record()

    manager.compute(record)
    first = record.fvals.as_dict()
    manager.compute(record)

    assert record.fvals.as_dict() == first


def test_dependent_alone_sees_missing_dependency():
    with pytest.raises(MissingDependency):
        ProvidesY().calculate(_record())


def test_osized_record_needs_loader():
    manager = FeatureManager(methods=[ProvidesX])
    record = _record()
    record.osized = True
    with pytest.raises(ValueError, match="no image loader"):
        manager.compute(record)


def test_fill_sentinels():
    manager = FeatureManager(methods=[ProvidesX, ProvidesY])
    record = _record()
    manager.fill_sentinels(record)
    assert record.fvals["x"] == [BAD_ROI_FVAL]
    assert record.fvals["y"] == [BAD_ROI_FVAL]
    assert record.fvals[AREA_PIXELS_COUNT] == [6.0]


def test_profiling_records_each_method():
    manager = FeatureManager(methods=[ProvidesX, ProvidesY], profile=True)
    manager.compute(_record(label=5))

    perf = manager.last_feature_perf[5]
    assert set(perf) == {"A", "B"}
    assert perf["A"]["total_time_sec"] >= 0


def test_default_catalogue_uses_registered_methods():
    manager = FeatureManager()
    assert manager.order == [GeodeticLengthThicknessFeature, NGTDMFeatures]


def test_enable_methods_by_alias_and_prefix():
    FeatureMethod.enable_methods_from_list(["ngtdm"])
    assert FeatureMethod.get_enabled_methods() == [NGTDMFeatures]

    FeatureMethod.enable_methods_from_list(["Geodetic"])
    assert FeatureMethod.get_enabled_methods() == [GeodeticLengthThicknessFeature]

    FeatureMethod.enable_methods_from_list([])
    assert FeatureMethod.get_enabled_methods() == []
    assert FeatureManager().order == []


def test_unregistered_classes_stay_out_of_the_registry():
    assert "ProvidesX" not in FeatureMethod.METHOD_REGISTRY
    assert FeatureMethod.METHOD_REGISTRY["NGTDMFeatures"] is NGTDMFeatures
