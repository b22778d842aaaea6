# -*- coding: utf-8 -*-
# core/base_feature_method.py

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Set, Tuple, Type

from pyroi.engine.core.errors import MissingDependency

if TYPE_CHECKING:
    from pyroi.data.image_loader import ImageLoader
    from pyroi.data.roi_registry import FeatureTable, RoiRecord

logger = logging.getLogger("Dev_logger")


class FeatureMethod:
    """
    Base class for feature methods with a class registry.

    A subclass declares the feature identifiers it writes (PROVIDES) and the
    identifiers it reads (DEPENDS). One instance is created per (ROI, method)
    evaluation; it keeps its working state between ``calculate`` (or
    ``osized_calculate``) and ``save_value`` and is discarded afterwards.
    """

    METHOD_REGISTRY: Dict[str, Type["FeatureMethod"]] = {}
    _ENABLED_ORDER: Optional[list[str]] = None

    NAME: Optional[str] = None
    PROVIDES: Tuple[str, ...] = ()
    DEPENDS: Tuple[str, ...] = ()

    def __init_subclass__(cls, register: bool = True, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)

        if not register:
            return

        FeatureMethod.METHOD_REGISTRY[cls.__name__] = cls

    @classmethod
    def enable_methods_from_list(cls, names: Optional[list[str]]) -> None:
        """
        Enable methods honoring caller-provided order.
        If names is None -> enable all. If [] -> disable all.
        """
        if names is None:
            # enable all (keep registration order)
            cls._ENABLED_ORDER = None
            return

        # Explicit list supplied (possibly empty): honor exactly, in order
        enabled_list: list[str] = []
        seen = set()

        for name in names:
            # Exact class name
            if name in cls.METHOD_REGISTRY and name not in seen:
                enabled_list.append(name); seen.add(name)
                continue

            # Also allow alias/prefix matches (preserve order; avoid dups)
            name_lower = name.lower()
            for reg_name, reg_cls in cls.METHOD_REGISTRY.items():
                if reg_name in seen:  # already included
                    continue
                reg_lower = reg_name.lower()
                reg_alias = (reg_cls.NAME or "").lower()
                if (
                    name_lower == reg_lower
                    or name_lower == reg_alias
                    or reg_lower.startswith(name_lower)
                    or (reg_alias and reg_alias.startswith(name_lower))
                ):
                    enabled_list.append(reg_name); seen.add(reg_name)

        cls._ENABLED_ORDER = enabled_list

    @classmethod
    def get_enabled_methods(cls) -> List[Type["FeatureMethod"]]:
        # No filter -> all in registration order
        if cls._ENABLED_ORDER is None:
            return list(cls.METHOD_REGISTRY.values())

        return [cls.METHOD_REGISTRY[n] for n in cls._ENABLED_ORDER if n in cls.METHOD_REGISTRY]

    # -------- declarations --------

    @classmethod
    def method_name(cls) -> str:
        return cls.NAME or cls.__name__

    @classmethod
    def provided_features(cls) -> Set[str]:
        return set(cls.PROVIDES)

    @classmethod
    def dependencies(cls) -> Set[str]:
        return set(cls.DEPENDS)

    # -------- evaluation --------

    def __init__(self) -> None:
        self.bad_roi_data = False

    def require(self, record: "RoiRecord", feature: str) -> List[float]:
        """Read a dependency value; its absence means the evaluation order is broken."""
        values = record.fvals.get(feature)
        if values is None:
            raise MissingDependency(self.method_name(), feature, record.label)
        return values

    def calculate(self, record: "RoiRecord") -> None:
        raise NotImplementedError

    def osized_calculate(self, record: "RoiRecord", loader: "ImageLoader") -> None:
        """Streaming entry point; aggregate-only methods compute exactly as in memory."""
        self.calculate(record)

    def osized_begin(self, record: "RoiRecord", loader: "ImageLoader") -> None:
        """Bind the record and loader before pixels are fed through ``osized_add_pixel``."""

    def osized_add_pixel(self, x: int, y: int, intensity: float) -> None:
        pass

    def osized_end(self) -> None:
        """Reduce the fed pixels into the working state read by ``save_value``."""

    def save_value(self, table: "FeatureTable") -> None:
        raise NotImplementedError
