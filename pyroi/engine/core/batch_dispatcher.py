# -*- coding: utf-8 -*-
# core/batch_dispatcher.py

from __future__ import annotations

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import psutil

from pyroi.data.image_loader import ImageLoader
from pyroi.data.roi_registry import LabelRegistry
from pyroi.engine.core.feature_manager import FeatureManager
from pyroi.utils.log_record import clear_label_context, set_label_context

logger = logging.getLogger("Dev_logger")


def partition(n_items: int, n_workers: int) -> List[Tuple[int, int]]:
    """
    Split ``range(n_items)`` into at most ``n_workers`` contiguous, disjoint
    (start, end) ranges whose sizes differ by at most one.
    """
    if n_workers < 1:
        raise ValueError(f"n_workers must be >= 1, got {n_workers}")
    if n_items <= 0:
        return []

    n_batches = min(n_workers, n_items)
    base, extra = divmod(n_items, n_batches)

    ranges: List[Tuple[int, int]] = []
    start = 0
    for i in range(n_batches):
        end = start + base + (1 if i < extra else 0)
        ranges.append((start, end))
        start = end
    return ranges


@dataclass
class DispatchReport:
    processed: int = 0
    skipped: int = 0
    workers: int = 1
    total_time_sec: float = 0.0
    end_memory_kb: float = 0.0


class BatchDispatcher:
    """
    Applies the manager's per-ROI computation across all labels.

    Labels are split into contiguous ranges, one per worker thread. A label
    is owned by exactly one worker for the whole pass and no worker inserts
    labels, so feature table writes need no lock.
    """

    def __init__(
            self,
            manager: FeatureManager,
            registry: LabelRegistry,
            loader: Optional[ImageLoader] = None,
            n_workers: Optional[int] = None,
    ) -> None:
        self.manager = manager
        self.registry = registry
        self.loader = loader
        self.n_workers = n_workers or min(8, os.cpu_count() or 1)

    def process_batch(self, start: int, end: int, labels: Sequence[int]) -> Tuple[int, int]:
        """Compute features for ``labels[start:end]``; returns (processed, skipped)."""
        processed = skipped = 0

        for i in range(start, end):
            label = labels[i]
            record = self.registry.get(label)
            set_label_context(label)
            try:
                if record.has_bad_data():
                    self.manager.fill_sentinels(record)
                    skipped += 1
                    continue

                self.manager.compute(record, self.registry, self.loader)
                processed += 1
            except Exception as exc:
                logger.error(f"Feature computation failed for ROI {label}: {exc}")
                raise
            finally:
                clear_label_context()

        return processed, skipped

    def run(self, labels: Optional[Sequence[int]] = None) -> DispatchReport:
        labels = list(self.registry.labels() if labels is None else labels)
        ranges = partition(len(labels), self.n_workers)

        proc = psutil.Process()
        t_start = time.perf_counter()
        report = DispatchReport(workers=max(1, len(ranges)))

        if len(ranges) <= 1:
            logger.info(f"Computing features for {len(labels)} ROIs sequentially")
            for start, end in ranges:
                processed, skipped = self.process_batch(start, end, labels)
                report.processed += processed
                report.skipped += skipped
        else:
            logger.info(f"Computing features for {len(labels)} ROIs with {len(ranges)} workers")
            with ThreadPoolExecutor(max_workers=len(ranges)) as pool:
                futures = [pool.submit(self.process_batch, start, end, labels) for start, end in ranges]
                for fut in futures:
                    processed, skipped = fut.result()
                    report.processed += processed
                    report.skipped += skipped

        report.total_time_sec = round(time.perf_counter() - t_start, 6)
        report.end_memory_kb = round(proc.memory_info().rss / 1024.0, 6)

        logger.info(
            f"Feature computation finished: {report.processed} processed, "
            f"{report.skipped} skipped in {report.total_time_sec:.2f} s"
        )
        return report
