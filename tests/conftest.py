import logging

import numpy as np
import pytest

from pyroi.data.image_loader import ArrayImageLoader
from pyroi.data.roi_ingestion import gather_roi_data
from pyroi.data.roi_registry import LabelRegistry
from pyroi.engine.core.base_feature_method import FeatureMethod


@pytest.fixture(autouse=True)
def reset_dev_logger():
    """Leave the shared logger as the tests found it."""
    logger = logging.getLogger("Dev_logger")
    yield
    logger.handlers.clear()
    logger.filters.clear()
    logger.disabled = False
    logger.setLevel(logging.NOTSET)


@pytest.fixture(autouse=True)
def reset_enabled_methods():
    yield
    FeatureMethod.enable_methods_from_list(None)


@pytest.fixture
def label_image():
    """Three ROIs: a 3x4 block, a 2x6 strip and a single pixel."""
    labels = np.zeros((8, 8), dtype=np.int32)
    labels[1:4, 1:5] = 1
    labels[5:7, 1:7] = 2
    labels[7, 7] = 3
    return labels


@pytest.fixture
def intensity_image():
    return (np.arange(64).reshape(8, 8) % 7 + 1).astype(np.float64)


@pytest.fixture
def loader(label_image, intensity_image):
    return ArrayImageLoader(label_image, intensity_image)


@pytest.fixture
def registry(loader):
    return gather_roi_data(LabelRegistry(), loader, osized_pixel_threshold=1_000_000)


@pytest.fixture
def osized_registry(loader):
    """Every ROI above the threshold, so all pixels are streamed."""
    return gather_roi_data(LabelRegistry(), loader, osized_pixel_threshold=1)
