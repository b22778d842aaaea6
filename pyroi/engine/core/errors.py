# -*- coding: utf-8 -*-
# core/errors.py
"""Error taxonomy of the feature computation engine.

Configuration errors are raised while the catalogue is resolved, before any
ROI is processed. Precondition violations signal an engine bug and are never
caught by the engine. Degenerate ROIs are not errors: feature methods return
sentinel values for them.
"""

from __future__ import annotations

from typing import Iterable


class FeatureConfigurationError(RuntimeError):
    """The registered feature catalogue cannot be evaluated."""


class CyclicDependency(FeatureConfigurationError):
    """The feature dependency graph contains a cycle."""

    def __init__(self, members: Iterable[str]) -> None:
        self.members = sorted(members)
        super().__init__(f"Cyclic feature dependency among: {', '.join(self.members)}")


class UnresolvedDependency(FeatureConfigurationError):
    """A method depends on a feature that no registered method provides."""

    def __init__(self, method_name: str, feature: str) -> None:
        self.method_name = method_name
        self.feature = feature
        super().__init__(f"{method_name} depends on '{feature}', which no registered method provides")


class MissingDependency(RuntimeError):
    """A dependency was absent from the feature table when a method ran."""

    def __init__(self, method_name: str, feature: str, label: int) -> None:
        self.method_name = method_name
        self.feature = feature
        self.label = label
        super().__init__(f"{method_name}: dependency '{feature}' missing for ROI {label}")


class FeatureOverwrite(RuntimeError):
    """A feature value was written twice within one computation pass."""

    def __init__(self, feature: str) -> None:
        self.feature = feature
        super().__init__(f"Feature '{feature}' is already set for this pass")


class UnknownLabel(KeyError):
    """A label was requested that was never ingested."""

    def __init__(self, label: int) -> None:
        self.label = label
        super().__init__(label)

    def __str__(self) -> str:
        return f"Unknown ROI label {self.label}"
