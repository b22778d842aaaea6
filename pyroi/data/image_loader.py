# -*- coding: utf-8 -*-
# data/image_loader.py

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Iterator, Optional, Tuple

import numpy as np

logger = logging.getLogger("Dev_logger")

PixelTriple = Tuple[int, int, float]


class ImageLoader(ABC):
    """
    Pixel access used by ingestion and by the out-of-size (streaming) path.

    Coordinates: x is the column, y is the row.
    """

    @property
    @abstractmethod
    def shape(self) -> Tuple[int, int]:
        """(height, width) of the image."""

    @abstractmethod
    def intensity(self, x: int, y: int) -> float:
        ...

    @abstractmethod
    def label(self, x: int, y: int) -> int:
        ...

    def safe(self, row: int, col: int) -> bool:
        height, width = self.shape
        return 0 <= row < height and 0 <= col < width

    @abstractmethod
    def iter_roi_pixels(
            self, label: int, aabb: Optional[Tuple[int, int, int, int]] = None
    ) -> Iterator[PixelTriple]:
        """Yield (x, y, intensity) once per pixel of ``label``, row-major."""


class ArrayImageLoader(ImageLoader):
    """Loader over an in-memory label image and a matching intensity image."""

    def __init__(self, label_image: np.ndarray, intensity_image: np.ndarray) -> None:
        label_image = np.asarray(label_image)
        intensity_image = np.asarray(intensity_image)

        if label_image.ndim != 2 or intensity_image.ndim != 2:
            raise ValueError("label_image and intensity_image must be 2D arrays.")
        if label_image.shape != intensity_image.shape:
            raise ValueError(
                f"Input shapes must match: label_image={label_image.shape}, "
                f"intensity_image={intensity_image.shape}"
            )
        if not np.issubdtype(label_image.dtype, np.integer):
            if not np.all(np.equal(np.mod(label_image, 1), 0)):
                raise ValueError("label_image must hold integer labels.")
            label_image = label_image.astype(np.int64)

        self.label_image = label_image
        self.intensity_image = intensity_image.astype(np.float64, copy=False)

    @property
    def shape(self) -> Tuple[int, int]:
        return self.label_image.shape

    def intensity(self, x: int, y: int) -> float:
        return float(self.intensity_image[y, x])

    def label(self, x: int, y: int) -> int:
        return int(self.label_image[y, x])

    def iter_roi_pixels(
            self, label: int, aabb: Optional[Tuple[int, int, int, int]] = None
    ) -> Iterator[PixelTriple]:
        if aabb is None:
            r0, c0 = 0, 0
            block = self.label_image
        else:
            r0, c0, r1, c1 = aabb
            block = self.label_image[r0:r1 + 1, c0:c1 + 1]

        rows, cols = np.nonzero(block == label)
        for row, col in zip(rows, cols):
            y, x = int(row) + r0, int(col) + c0
            yield x, y, float(self.intensity_image[y, x])
