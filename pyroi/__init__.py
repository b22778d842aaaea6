__version__ = "1.0.0"

from typing import List, Optional, Union

import numpy as np

from .processing.roi_processor import RoiFeatureProcessor
from .utils.log_record import MemoryLogHandler, initialize_logging


def process_labels(
        label_image: np.ndarray,
        intensity_image: np.ndarray,
        num_workers: Optional[Union[str, int]] = None,
        enable_parallelism: Optional[bool] = None,
        osized_pixel_threshold: Optional[int] = None,
        methods: Optional[List[str]] = None,
        features: Optional[List[str]] = None,
        report: Optional[str] = None,
        profile: bool = False,
):
    import time
    import logging
    logger = logging.getLogger("Dev_logger")

    start_time = time.time()

    logger, memory_handler = initialize_logging(report or "all")
    logger.info("Starting pyroi feature computation")

    try:
        processor = RoiFeatureProcessor(
            num_workers=num_workers,
            enable_parallelism=enable_parallelism,
            osized_pixel_threshold=osized_pixel_threshold,
            methods=methods,
            features=features,
            report=report,
            memory_handler=memory_handler,
            profile=profile,
        )

        df = processor.process(label_image, intensity_image)
        processing_time = time.time() - start_time
        dispatch = processor.last_report

        logger.info(f"Processing completed successfully in {processing_time:.2f} seconds")

        return {
            'success': True,
            'features': df,
            'rois_processed': dispatch.processed if dispatch else 0,
            'rois_skipped': dispatch.skipped if dispatch else 0,
            'processing_time': processing_time,
            'feature_perf': processor.manager.last_feature_perf if profile else {},
            'logs': memory_handler.get_logs() if memory_handler else [],
        }

    except Exception as e:
        processing_time = time.time() - start_time
        logger.error(f"Processing failed with error: {e}")

        return {
            'success': False,
            'features': None,
            'rois_processed': 0,
            'rois_skipped': 0,
            'processing_time': processing_time,
            'feature_perf': {},
            'logs': memory_handler.get_logs() if memory_handler else [],
            'error': str(e),
        }


__all__ = [
    'process_labels',
    'RoiFeatureProcessor',
    'MemoryLogHandler',
    '__version__',
]
