# -*- coding: utf-8 -*-
# core/methods/geodetic_length_thickness.py

from __future__ import annotations

import logging
import math

from pyroi.data.roi_registry import FeatureTable, RoiRecord
from pyroi.engine.core.base_feature_method import FeatureMethod
from pyroi.features.feature_names import AREA_PIXELS_COUNT, GEODETIC_LENGTH, PERIMETER, THICKNESS

logger = logging.getLogger("Dev_logger")


class GeodeticLengthThicknessFeature(FeatureMethod):
    """
    Geodetic length and thickness of a ribbon-like ROI.

    Models the ROI as a rectangle of length l and thickness t with
    A = l * t and L = 2 * (l + t). Solving for l with the pq-formula gives
    l = L/4 + sqrt(L^2/16 - A) and t = L/2 - l.
    """

    NAME: str = "GeodeticLengthThickness"
    PROVIDES = (GEODETIC_LENGTH, THICKNESS)
    DEPENDS = (AREA_PIXELS_COUNT, PERIMETER)

    def __init__(self) -> None:
        super().__init__()
        self.geodetic_length = 0.0
        self.thickness = 0.0

    def calculate(self, record: RoiRecord) -> None:
        roi_area = self.require(record, AREA_PIXELS_COUNT)[0]
        roi_perimeter = self.require(record, PERIMETER)[0]

        radicand = roi_perimeter * roi_perimeter / 16.0 - roi_area

        # Pixelated perimeter/area can make the radicand slightly negative
        if radicand < 0:
            radicand = 0.0

        self.geodetic_length = roi_perimeter / 4.0 + math.sqrt(radicand)
        self.thickness = roi_perimeter / 2.0 - self.geodetic_length

    def save_value(self, table: FeatureTable) -> None:
        table[GEODETIC_LENGTH] = [self.geodetic_length]
        table[THICKNESS] = [self.thickness]
