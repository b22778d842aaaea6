# -*- coding: utf-8 -*-
# data/roi_registry.py

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Set, Tuple

import numpy as np

from pyroi.engine.core.errors import FeatureOverwrite, UnknownLabel
from pyroi.features.feature_names import BASE_FEATURES

logger = logging.getLogger("Dev_logger")


class FeatureTable:
    """Feature identifier -> list of floats, written at most once per pass."""

    def __init__(self) -> None:
        self._values: Dict[str, List[float]] = {}

    def __contains__(self, feature: str) -> bool:
        return feature in self._values

    def __getitem__(self, feature: str) -> List[float]:
        return self._values[feature]

    def __setitem__(self, feature: str, values: Sequence[float]) -> None:
        if feature in self._values:
            raise FeatureOverwrite(feature)
        self._values[feature] = [float(v) for v in np.atleast_1d(values)]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def get(self, feature: str, default: Optional[List[float]] = None) -> Optional[List[float]]:
        return self._values.get(feature, default)

    def scalar(self, feature: str) -> float:
        return self._values[feature][0]

    def reset(self) -> None:
        """Drop derived features; base measurements survive."""
        self._values = {k: v for k, v in self._values.items() if k in BASE_FEATURES}

    def as_dict(self) -> Dict[str, List[float]]:
        return {k: list(v) for k, v in self._values.items()}


@dataclass
class RoiRecord:
    """Per-label data accumulated during ingestion and feature computation."""

    label: int
    aux_area: int = 0
    aux_min: float = 0.0
    aux_max: float = 0.0
    perimeter: float = 0.0
    aabb: Tuple[int, int, int, int] = (0, 0, 0, 0)  # min_row, min_col, max_row, max_col (inclusive)
    fvals: FeatureTable = field(default_factory=FeatureTable)
    bad: bool = False
    osized: bool = False
    image_matrix: Optional[np.ndarray] = None

    def has_bad_data(self) -> bool:
        return self.bad

    @property
    def aabb_height(self) -> int:
        return self.aabb[2] - self.aabb[0] + 1

    @property
    def aabb_width(self) -> int:
        return self.aabb[3] - self.aabb[1] + 1


class LabelRegistry:
    """
    Label -> RoiRecord table for one pipeline run.

    Lifecycle: created empty at pipeline start, populated during ingestion,
    read and written along disjoint labels during feature computation, and
    read-only during result assembly. Records are never removed.

    The per-label locks serialize accesses that cross the ingestion /
    computation boundary (streamed pixel reads). Feature computation itself
    is lock-free because each label is owned by exactly one worker.
    """

    def __init__(self) -> None:
        self._records: Dict[int, RoiRecord] = {}
        self._unique_labels: Set[int] = set()
        self._label_locks: Dict[int, threading.Lock] = {}
        self._create_lock = threading.Lock()

    def create(self, label: int) -> RoiRecord:
        label = int(label)
        with self._create_lock:
            record = self._records.get(label)
            if record is None:
                record = RoiRecord(label=label)
                self._records[label] = record
                self._unique_labels.add(label)
                self._label_locks[label] = threading.Lock()
        return record

    def get(self, label: int) -> RoiRecord:
        try:
            return self._records[int(label)]
        except KeyError:
            raise UnknownLabel(label) from None

    def mark_bad(self, label: int) -> None:
        record = self.get(label)
        if not record.bad:
            logger.debug("ROI %d marked bad", record.label)
        record.bad = True

    def lock_for(self, label: int) -> threading.Lock:
        try:
            return self._label_locks[int(label)]
        except KeyError:
            raise UnknownLabel(label) from None

    def labels(self) -> List[int]:
        return sorted(self._unique_labels)

    def __iter__(self) -> Iterator[int]:
        return iter(self.labels())

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, label: object) -> bool:
        return label in self._records
