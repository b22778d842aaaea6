import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import numpy as np
import pandas as pd

from ..config.settings import (
    BAD_ROI_FVAL,
    DEFAULT_FEATURE_PARAMS,
    LOG_LEVEL_MAP,
    MAX_OSIZED_PIXEL_THRESHOLD,
    MAX_WORKERS,
    MIN_OSIZED_PIXEL_THRESHOLD,
    MIN_WORKERS,
)
from ..data.image_loader import ArrayImageLoader
from ..data.roi_ingestion import gather_roi_data
from ..data.roi_registry import LabelRegistry
from ..engine.core.batch_dispatcher import BatchDispatcher, DispatchReport
from ..engine.core.base_feature_method import FeatureMethod
from ..engine.core.feature_manager import FeatureManager, import_all_methods
from ..features.feature_names import BASE_FEATURES, expand_feature_selection
from ..utils.log_record import log_to_excel

logger = logging.getLogger("Dev_logger")


def results_to_dataframe(registry: LabelRegistry, manager: FeatureManager) -> pd.DataFrame:
    """Create the results DataFrame with 'ROI' as the first column, one row per label."""
    columns = list(BASE_FEATURES) + manager.provided_features()
    rows: List[Dict[str, Any]] = []

    for label in registry:
        record = registry.get(label)
        row: Dict[str, Any] = {"ROI": label}
        for feature in columns:
            values = record.fvals.get(feature, [BAD_ROI_FVAL])
            if len(values) == 1:
                row[feature] = values[0]
            else:
                # Vector features expand to name_0..name_k
                for i, value in enumerate(values):
                    row[f"{feature}_{i}"] = value
        rows.append(row)

    if not rows:
        return pd.DataFrame(columns=["ROI"] + columns)

    df = pd.DataFrame(rows)
    ordered = ["ROI"] + [col for col in df.columns if col != "ROI"]
    return df.reindex(columns=ordered)


class RoiFeatureProcessor:
    """Runs ingestion, feature computation and result assembly for one label/intensity image pair."""

    def __init__(
            self,
            num_workers: Optional[Union[str, int]] = None,
            enable_parallelism: Optional[bool] = None,
            osized_pixel_threshold: Optional[int] = None,
            methods: Optional[List[str]] = None,
            features: Optional[List[str]] = None,
            report: Optional[str] = None,
            memory_handler: Optional[Any] = None,
            profile: bool = False,
    ) -> None:
        self.memory_handler = memory_handler
        self.profile = profile

        # Initialize default parameters
        self.params: Dict[str, Any] = DEFAULT_FEATURE_PARAMS.copy()

        # Explicit parameter overrides
        param_updates = {
            "roi_num_workers": num_workers,
            "roi_enable_parallelism": enable_parallelism,
            "roi_osized_pixel_threshold": osized_pixel_threshold,
            "roi_methods": methods,
            "roi_features": features,
            "roi_report": report,
        }

        for key, value in param_updates.items():
            if value is not None:
                self.params[key] = value

        self._validate_params()

        self.registry: Optional[LabelRegistry] = None
        self.manager: Optional[FeatureManager] = None
        self.last_report: Optional[DispatchReport] = None

    # -------------------------------------------------------------------------
    # Parameter handling
    # -------------------------------------------------------------------------
    def _validate_params(self) -> None:
        workers = self.params["roi_num_workers"]
        if workers != "auto":
            if isinstance(workers, bool) or not isinstance(workers, int):
                raise ValueError(f"roi_num_workers must be 'auto' or an integer, got {workers!r}")
            if not MIN_WORKERS <= workers <= MAX_WORKERS:
                raise ValueError(f"roi_num_workers must be in [{MIN_WORKERS}, {MAX_WORKERS}], got {workers}")

        threshold = self.params["roi_osized_pixel_threshold"]
        if isinstance(threshold, bool) or not isinstance(threshold, int):
            raise ValueError(f"roi_osized_pixel_threshold must be an integer, got {threshold!r}")
        if not MIN_OSIZED_PIXEL_THRESHOLD <= threshold <= MAX_OSIZED_PIXEL_THRESHOLD:
            raise ValueError(
                f"roi_osized_pixel_threshold must be in "
                f"[{MIN_OSIZED_PIXEL_THRESHOLD}, {MAX_OSIZED_PIXEL_THRESHOLD}], got {threshold}"
            )

        if self.params["roi_report"] not in LOG_LEVEL_MAP:
            raise ValueError(f"Unknown report mode {self.params['roi_report']!r}")

    def resolve_workers(self, n_labels: int) -> int:
        if not self.params["roi_enable_parallelism"]:
            return 1

        if self.params["roi_num_workers"] == "auto":
            workers = min(os.cpu_count() or 1, max(n_labels, 1))
        else:
            workers = int(self.params["roi_num_workers"])
        return max(MIN_WORKERS, min(MAX_WORKERS, workers))

    # -------------------------------------------------------------------------
    # Main Processing API
    # -------------------------------------------------------------------------
    def process(self, label_image: np.ndarray, intensity_image: np.ndarray) -> pd.DataFrame:
        """
        Compute the selected features for every ROI of ``label_image``.

        Returns a DataFrame with one row per label (ascending); the registry,
        manager and dispatch report of the run stay available on the processor.
        """
        loader = ArrayImageLoader(label_image, intensity_image)

        features = self.params["roi_features"]
        if features is not None:
            features = expand_feature_selection(features)

        # Method names match by class name, alias or prefix; None keeps the whole catalogue
        import_all_methods()
        FeatureMethod.enable_methods_from_list(self.params["roi_methods"])

        # Configuration errors surface here, before any ROI is touched
        self.manager = FeatureManager(features=features, profile=self.profile)

        self.registry = LabelRegistry()
        gather_roi_data(self.registry, loader, self.params["roi_osized_pixel_threshold"])

        workers = self.resolve_workers(len(self.registry))
        dispatcher = BatchDispatcher(self.manager, self.registry, loader, n_workers=workers)
        self.last_report = dispatcher.run()

        return results_to_dataframe(self.registry, self.manager)

    def save_report(self, excel_path: Union[str, Path]) -> None:
        """Write the captured log lines of the run to an Excel workbook."""
        if self.memory_handler is None:
            logger.warning("No memory handler attached; nothing to save")
            return

        try:
            log_to_excel(excel_path, self.memory_handler.get_logs())
        except (ValueError, PermissionError) as e:
            logger.error("Error saving report: %s", e)
            raise
