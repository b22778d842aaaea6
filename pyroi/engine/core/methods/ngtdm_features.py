# -*- coding: utf-8 -*-
# core/methods/ngtdm_features.py

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

import numpy as np
from scipy.ndimage import convolve

from pyroi.config.settings import BAD_ROI_FVAL
from pyroi.data.image_loader import ImageLoader
from pyroi.data.roi_registry import FeatureTable, RoiRecord
from pyroi.engine.core.base_feature_method import FeatureMethod
from pyroi.features.feature_names import (
    MAX_INTENSITY,
    MIN_INTENSITY,
    NGTDM_BUSYNESS,
    NGTDM_COARSENESS,
    NGTDM_COMPLEXITY,
    NGTDM_CONTRAST,
    NGTDM_STRENGTH,
)

logger = logging.getLogger("Dev_logger")

# 8-connected neighbourhood as (d_row, d_col): N, NE, E, SE, S, SW, W, NW
_NEIGHBOR_OFFSETS = ((-1, 0), (-1, 1), (0, 1), (1, 1), (1, 0), (1, -1), (0, -1), (-1, -1))

_KERNEL = np.ones((3, 3), np.float64)
_KERNEL[1, 1] = 0.0


class NGTDMFeatures(FeatureMethod):
    """
    Neighbouring gray-tone difference matrix features.

    Every non-blank pixel of the ROI's bounding-box matrix is paired with the
    mean intensity of its in-bounds 8-neighbours (blank neighbours inside the
    box count as 0). Both the in-memory and the streaming path reduce those
    pairs with ``_fill_matrix``; the five scalars are computed from the
    resulting N, S and P vectors indexed by intensity rank.
    """

    NAME: str = "NGTDM"
    PROVIDES = (NGTDM_COARSENESS, NGTDM_CONTRAST, NGTDM_BUSYNESS, NGTDM_COMPLEXITY, NGTDM_STRENGTH)
    DEPENDS = (MIN_INTENSITY, MAX_INTENSITY)

    def __init__(self) -> None:
        super().__init__()
        self.Ng = 0  # number of distinct non-blank intensities
        self.Ngp = 0  # number of gray levels actually present
        self.Nvp = 0  # pixels whose neighbourhood mean is positive
        self.N = np.zeros(0, dtype=np.int64)
        self.S = np.zeros(0, dtype=np.float64)
        self.P = np.zeros(0, dtype=np.float64)

        # streaming state
        self._loader: Optional[ImageLoader] = None
        self._label = 0
        self._aabb: Tuple[int, int, int, int] = (0, 0, 0, 0)
        self._height = 0
        self._width = 0
        self._online_intensities: List[float] = []
        self._online_means: List[float] = []

    # ----------------------------------------------------------------------
    # Input adapters
    # ----------------------------------------------------------------------
    def _is_degenerate(self, record: RoiRecord) -> bool:
        min_i = self.require(record, MIN_INTENSITY)[0]
        max_i = self.require(record, MAX_INTENSITY)[0]
        if min_i == max_i:
            self.bad_roi_data = True
        return self.bad_roi_data

    def calculate(self, record: RoiRecord) -> None:
        if self._is_degenerate(record):
            return

        matrix = np.asarray(record.image_matrix, dtype=np.float64)
        intensities, neighbor_means = self._neighborhood_means(matrix)
        self._fill_matrix(intensities, neighbor_means, matrix.shape[0], matrix.shape[1])

    def osized_calculate(self, record: RoiRecord, loader: ImageLoader) -> None:
        self.osized_begin(record, loader)
        if self.bad_roi_data:
            return

        for x, y, intensity in loader.iter_roi_pixels(record.label, record.aabb):
            self.osized_add_pixel(x, y, intensity)
        self.osized_end()

    def osized_begin(self, record: RoiRecord, loader: ImageLoader) -> None:
        self._online_intensities, self._online_means = [], []
        if self._is_degenerate(record):
            return

        self._loader = loader
        self._label = record.label
        self._aabb = record.aabb
        self._height = record.aabb_height
        self._width = record.aabb_width

    def osized_add_pixel(self, x: int, y: int, intensity: float) -> None:
        if self.bad_roi_data or intensity == 0:
            return
        if self._loader is None:
            raise RuntimeError("osized_begin() must be called before pixels are fed")

        r0, c0, r1, c1 = self._aabb
        neighbors_sum = 0.0
        nd = 0
        for d_row, d_col in _NEIGHBOR_OFFSETS:
            row, col = y + d_row, x + d_col
            if not (self._loader.safe(row, col) and r0 <= row <= r1 and c0 <= col <= c1):
                continue
            nd += 1
            if self._loader.label(col, row) == self._label:
                neighbors_sum += self._loader.intensity(col, row)

        self._online_intensities.append(float(intensity))
        self._online_means.append(neighbors_sum / nd if nd else 0.0)

    def osized_end(self) -> None:
        if self.bad_roi_data:
            return

        # pixels may arrive in any order
        self._fill_matrix(
            np.asarray(self._online_intensities, dtype=np.float64),
            np.asarray(self._online_means, dtype=np.float64),
            self._height,
            self._width,
        )
        self._loader = None
        self._online_intensities, self._online_means = [], []

    @staticmethod
    def _neighborhood_means(matrix: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """(intensity, mean of in-bounds neighbours) for every non-blank pixel."""
        neigh_sum = convolve(matrix, _KERNEL, mode="constant", cval=0.0)
        neigh_cnt = convolve(np.ones_like(matrix), _KERNEL, mode="constant", cval=0.0)

        used = matrix != 0
        counts = neigh_cnt[used]
        means = np.zeros(counts.shape, dtype=np.float64)
        np.divide(neigh_sum[used], counts, out=means, where=counts > 0)
        return matrix[used], means

    def _fill_matrix(self, intensities: np.ndarray, neighbor_means: np.ndarray, height: int, width: int) -> None:
        levels = np.unique(intensities)
        self.Ng = int(levels.size)
        self.Ngp = self.Ng

        if self.Ng == 0:
            self.bad_roi_data = True
            return

        rows = np.searchsorted(levels, intensities)
        self.N = np.bincount(rows, minlength=self.Ng).astype(np.int64)
        self.S = np.bincount(rows, weights=np.abs(intensities - neighbor_means), minlength=self.Ng)
        self.Nvp = int(np.count_nonzero(neighbor_means > 0.0))

        # Normalized occurrence weight: Ng over the matrix size, identical for every level
        self.P = np.full(self.Ng, float(self.Ng) / (height * width), dtype=np.float64)

    # ----------------------------------------------------------------------
    # Feature calculations
    # ----------------------------------------------------------------------
    def _rank_distance(self) -> np.ndarray:
        ranks = np.arange(1, self.Ng + 1, dtype=np.float64)
        return ranks[:, None] - ranks[None, :]

    def calc_coarseness(self) -> float:
        if self.bad_roi_data:
            return BAD_ROI_FVAL

        total = float(np.dot(self.P, self.S))
        if total == 0.0:
            return BAD_ROI_FVAL
        return 1.0 / total

    def calc_contrast(self) -> float:
        if self.bad_roi_data:
            return BAD_ROI_FVAL

        # term 1
        total = float(np.sum(self.P[:, None] * self.P[None, :] * self._rank_distance() ** 2))
        ngp_p2 = self.Ngp * (self.Ngp - 1) if self.Ngp > 1 else self.Ngp
        term1 = total / float(ngp_p2)

        # term 2
        term2 = float(np.sum(self.S)) / float(self.Ngp)

        return term1 * term2

    def calc_busyness(self) -> float:
        if self.bad_roi_data:
            return BAD_ROI_FVAL

        # Trivial case
        if self.Ngp == 1:
            return 0.0

        sum1 = float(np.dot(self.P, self.S))

        weighted = self.P * np.arange(self.Ng, dtype=np.float64)
        sum2 = float(np.sum(np.abs(weighted[:, None] - weighted[None, :])))
        if sum2 == 0.0:
            return BAD_ROI_FVAL

        return sum1 / sum2

    def calc_complexity(self) -> float:
        if self.bad_roi_data:
            return BAD_ROI_FVAL
        if self.Nvp == 0:
            return BAD_ROI_FVAL

        ps = self.P * self.S
        summand = (
            np.abs(self._rank_distance())
            * (ps[:, None] + ps[None, :])
            / (self.P[:, None] + self.P[None, :])
        )
        return float(np.sum(summand)) / float(self.Nvp)

    def calc_strength(self) -> float:
        if self.bad_roi_data:
            return BAD_ROI_FVAL

        sum1 = float(np.sum((self.P[:, None] + self.P[None, :]) * self._rank_distance() ** 2))
        sum2 = float(np.sum(self.S))
        if sum2 == 0.0:
            return BAD_ROI_FVAL

        return sum1 / sum2

    def save_value(self, table: FeatureTable) -> None:
        table[NGTDM_COARSENESS] = [self.calc_coarseness()]
        table[NGTDM_CONTRAST] = [self.calc_contrast()]
        table[NGTDM_BUSYNESS] = [self.calc_busyness()]
        table[NGTDM_COMPLEXITY] = [self.calc_complexity()]
        table[NGTDM_STRENGTH] = [self.calc_strength()]
