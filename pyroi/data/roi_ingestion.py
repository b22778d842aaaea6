# -*- coding: utf-8 -*-
# data/roi_ingestion.py

from __future__ import annotations

import logging
from typing import Tuple

import numpy as np
from scipy import ndimage
from skimage.measure import perimeter as skimage_perimeter

from pyroi.config.settings import DEFAULT_FEATURE_PARAMS
from pyroi.data.image_loader import ArrayImageLoader
from pyroi.data.roi_registry import LabelRegistry, RoiRecord
from pyroi.features.feature_names import AREA_PIXELS_COUNT, MAX_INTENSITY, MIN_INTENSITY, PERIMETER

logger = logging.getLogger("Dev_logger")


def find_unique_labels(label_image: np.ndarray) -> np.ndarray:
    """Distinct non-zero labels, ascending."""
    labels = np.unique(label_image)
    labels = labels[labels != 0]  # remove background
    if labels.size and labels[0] < 0:
        raise ValueError(f"ROI labels must be positive integers, got {int(labels[0])}")
    return labels


def rank_image(label_image: np.ndarray, labels: np.ndarray) -> np.ndarray:
    """Replace every label by its 1-based rank in ``labels``; background stays 0."""
    ranks = np.searchsorted(labels, label_image) + 1
    ranks[label_image == 0] = 0
    return ranks


def slice_to_aabb(roi_slice: Tuple[slice, slice]) -> Tuple[int, int, int, int]:
    rows, cols = roi_slice
    return rows.start, cols.start, rows.stop - 1, cols.stop - 1


def _fill_record(
        record: RoiRecord,
        label_block: np.ndarray,
        intensity_block: np.ndarray,
        aabb: Tuple[int, int, int, int],
        osized_pixel_threshold: int,
) -> None:
    mask = label_block == record.label
    area = int(np.count_nonzero(mask))

    record.aabb = aabb
    record.aux_area = area

    if area == 0:
        return

    roi_values = intensity_block[mask]
    record.aux_min = float(roi_values.min())
    record.aux_max = float(roi_values.max())
    record.perimeter = float(skimage_perimeter(mask))

    # Out-of-size ROIs keep no matrix; their pixels are streamed from the loader
    record.osized = mask.size > osized_pixel_threshold
    if not record.osized:
        record.image_matrix = np.where(mask, intensity_block, 0.0)

    record.fvals[AREA_PIXELS_COUNT] = [area]
    record.fvals[PERIMETER] = [record.perimeter]
    record.fvals[MIN_INTENSITY] = [record.aux_min]
    record.fvals[MAX_INTENSITY] = [record.aux_max]


def gather_roi_data(
        registry: LabelRegistry,
        loader: ArrayImageLoader,
        osized_pixel_threshold: int = DEFAULT_FEATURE_PARAMS["roi_osized_pixel_threshold"],
) -> LabelRegistry:
    """
    Populate ``registry`` with one record per distinct label of the loader's label image.

    Computes the base measurements (area, perimeter, intensity range, bounding
    box) and decides per ROI whether its pixels are materialized as a dense
    matrix or streamed later (out-of-size path).
    """
    label_image = loader.label_image
    intensity_image = loader.intensity_image

    labels = find_unique_labels(label_image)
    if labels.size == 0:
        logger.warning("Label image holds no ROIs")
        return registry

    # slice k belongs to labels[k]
    roi_slices = ndimage.find_objects(rank_image(label_image, labels), max_label=int(labels.size))
    n_osized = 0

    for label, roi_slice in zip(labels, roi_slices):
        label = int(label)
        record = registry.create(label)

        if AREA_PIXELS_COUNT in record.fvals:
            logger.debug("ROI %d already ingested; skipping", label)
            continue

        if roi_slice is None:
            registry.mark_bad(label)
            continue

        with registry.lock_for(label):
            _fill_record(
                record,
                label_image[roi_slice],
                intensity_image[roi_slice],
                slice_to_aabb(roi_slice),
                osized_pixel_threshold,
            )

        if record.aux_area == 0:
            registry.mark_bad(label)
        n_osized += int(record.osized)

    logger.info(f"Ingested {len(registry)} ROIs ({n_osized} out-of-size)")
    return registry
