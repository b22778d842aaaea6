# -*- coding: utf-8 -*-
# core/feature_manager.py

from __future__ import annotations

import heapq
import importlib
import logging
import pkgutil
import time
from contextlib import nullcontext
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Set, Type

import psutil

from pyroi.config.settings import BAD_ROI_FVAL
from pyroi.data.image_loader import ImageLoader
from pyroi.data.roi_registry import LabelRegistry, RoiRecord
from pyroi.engine.core.base_feature_method import FeatureMethod
from pyroi.engine.core.errors import CyclicDependency, FeatureConfigurationError, UnresolvedDependency
from pyroi.features.feature_names import BASE_FEATURES

logger = logging.getLogger("Dev_logger")

METHODS_PACKAGE = "pyroi.engine.core.methods"


def import_all_methods(package_name: str = METHODS_PACKAGE) -> None:
    """Import every module of the methods package so their classes register."""
    pkg = importlib.import_module(package_name)
    if hasattr(pkg, "__path__"):
        for _, module_name, is_pkg in pkgutil.iter_modules(pkg.__path__, package_name + "."):
            if not is_pkg:
                importlib.import_module(module_name)


class FeatureManager:
    """
    Resolves the evaluation order of the feature methods and drives them per ROI.

    The dependency graph has feature identifiers as nodes and an edge from
    every dependency to each feature requiring it. Methods are ordered
    topologically; among methods that are ready at the same time the one
    registered first runs first, so the order is reproducible. Configuration
    problems (cycles, unresolved or duplicated features) raise at
    construction, before any ROI is touched.
    """

    def __init__(
            self,
            methods: Optional[Sequence[Type[FeatureMethod]]] = None,
            features: Optional[List[str]] = None,
            profile: bool = False,
    ) -> None:
        if methods is None:
            import_all_methods()
            methods = FeatureMethod.get_enabled_methods()

        self.profile = profile
        self.last_feature_perf: Dict[int, Dict[str, Dict[str, Any]]] = {}

        self._provider = self._map_providers(methods)
        methods = list(methods)
        if features is not None:
            methods = self._select_methods(methods, features)

        self._validate_dependencies(methods)
        self.dependency_graph = self._build_dependency_graph(methods)
        self.order: List[Type[FeatureMethod]] = self._resolve_order(methods)

        logger.debug("Feature evaluation order: %s", [m.method_name() for m in self.order])

    # ---------- graph ----------
    @staticmethod
    def _map_providers(methods: Sequence[Type[FeatureMethod]]) -> Dict[str, Type[FeatureMethod]]:
        provider: Dict[str, Type[FeatureMethod]] = {}
        for method in methods:
            for feature in method.PROVIDES:
                if feature in BASE_FEATURES:
                    raise FeatureConfigurationError(
                        f"{method.method_name()} provides base measurement '{feature}'"
                    )
                other = provider.get(feature)
                if other is not None and other is not method:
                    raise FeatureConfigurationError(
                        f"Feature '{feature}' provided by both {other.method_name()} and {method.method_name()}"
                    )
                provider[feature] = method
        return provider

    def _select_methods(
            self, methods: List[Type[FeatureMethod]], features: List[str]
    ) -> List[Type[FeatureMethod]]:
        """Keep the methods providing ``features`` plus everything they transitively need."""
        needed: Set[Type[FeatureMethod]] = set()
        pending = list(features)

        while pending:
            feature = pending.pop()
            if feature in BASE_FEATURES:
                continue
            method = self._provider.get(feature)
            if method is None:
                raise FeatureConfigurationError(f"Requested feature '{feature}' is not provided by any method")
            if method not in needed:
                needed.add(method)
                pending.extend(method.DEPENDS)

        return [m for m in methods if m in needed]

    def _validate_dependencies(self, methods: Sequence[Type[FeatureMethod]]) -> None:
        for method in methods:
            for dep in method.DEPENDS:
                if dep not in BASE_FEATURES and dep not in self._provider:
                    raise UnresolvedDependency(method.method_name(), dep)

    @staticmethod
    def _build_dependency_graph(methods: Sequence[Type[FeatureMethod]]) -> Dict[str, Set[str]]:
        graph: Dict[str, Set[str]] = {}
        for method in methods:
            for feature in method.PROVIDES:
                graph.setdefault(feature, set())
                for dep in method.DEPENDS:
                    graph.setdefault(dep, set()).add(feature)
        return graph

    def _resolve_order(self, methods: List[Type[FeatureMethod]]) -> List[Type[FeatureMethod]]:
        position = {method: i for i, method in enumerate(methods)}

        # method -> methods it waits for
        upstream: Dict[Type[FeatureMethod], Set[Type[FeatureMethod]]] = {}
        for method in methods:
            upstream[method] = {
                self._provider[dep] for dep in method.DEPENDS if dep not in BASE_FEATURES
            }

        downstream: Dict[Type[FeatureMethod], List[Type[FeatureMethod]]] = {m: [] for m in methods}
        for method, deps in upstream.items():
            for dep in deps:
                downstream[dep].append(method)

        indegree = {method: len(deps) for method, deps in upstream.items()}
        ready = [position[m] for m in methods if indegree[m] == 0]
        heapq.heapify(ready)

        order: List[Type[FeatureMethod]] = []
        while ready:
            method = methods[heapq.heappop(ready)]
            order.append(method)
            for child in downstream[method]:
                indegree[child] -= 1
                if indegree[child] == 0:
                    heapq.heappush(ready, position[child])

        if len(order) != len(methods):
            stuck = [m for m in methods if indegree[m] > 0]
            raise CyclicDependency(f for m in stuck for f in m.PROVIDES)

        return order

    def provided_features(self) -> List[str]:
        return [feature for method in self.order for feature in method.PROVIDES]

    # -------- profiling --------

    @staticmethod
    def _profile_snapshot() -> Dict[str, Any]:
        rss_kb = psutil.Process().memory_info().rss / 1024.0
        return {"time": time.perf_counter(), "wall": datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f"), "rss_kb": rss_kb}

    @staticmethod
    def _profile_delta(start: Dict[str, Any]) -> Dict[str, Any]:
        end = FeatureManager._profile_snapshot()

        return {
            "start_time": start["wall"],
            "end_time": end["wall"],
            "total_time_sec": round(end["time"] - start["time"], 6),
            "total_memory_KB": round(end["rss_kb"] - start["rss_kb"], 6),
        }

    # -------- per-ROI evaluation --------

    def compute(
            self,
            record: RoiRecord,
            registry: Optional[LabelRegistry] = None,
            loader: Optional[ImageLoader] = None,
    ) -> None:
        """Run every method on ``record`` in resolved order, writing into its feature table."""
        record.fvals.reset()
        perf: Dict[str, Dict[str, Any]] = {}

        for method_cls in self.order:
            method = method_cls()
            prof = self._profile_snapshot() if self.profile else None

            if record.osized:
                if loader is None:
                    raise ValueError(f"ROI {record.label} is out-of-size but no image loader was supplied")
                lock = registry.lock_for(record.label) if registry is not None else nullcontext()
                with lock:
                    method.osized_calculate(record, loader)
            else:
                method.calculate(record)

            method.save_value(record.fvals)

            if prof is not None:
                perf[method_cls.method_name()] = self._profile_delta(prof)

        if self.profile:
            self.last_feature_perf[record.label] = perf

    def fill_sentinels(self, record: RoiRecord) -> None:
        """Give a record flagged bad the sentinel value for every provided feature."""
        record.fvals.reset()
        for feature in self.provided_features():
            record.fvals[feature] = [BAD_ROI_FVAL]
