"""
Feature name definitions and management for ROI analysis.
"""

from typing import List, Optional
import logging

logger = logging.getLogger("Dev_logger")

# Base measurements, written during ingestion rather than by a feature method
AREA_PIXELS_COUNT = "area_pixels_count"
PERIMETER = "perimeter"
MIN_INTENSITY = "min_intensity"
MAX_INTENSITY = "max_intensity"

BASE_FEATURES = (AREA_PIXELS_COUNT, PERIMETER, MIN_INTENSITY, MAX_INTENSITY)

# Shape
GEODETIC_LENGTH = "geodetic_length"
THICKNESS = "thickness"

# Neighbouring gray-tone difference matrix
NGTDM_COARSENESS = "ngtdm_coarseness"
NGTDM_CONTRAST = "ngtdm_contrast"
NGTDM_BUSYNESS = "ngtdm_busyness"
NGTDM_COMPLEXITY = "ngtdm_complexity"
NGTDM_STRENGTH = "ngtdm_strength"

FEATURE_GROUPS = {
    "base": list(BASE_FEATURES),
    "shape": [GEODETIC_LENGTH, THICKNESS],
    "ngtdm": [NGTDM_COARSENESS, NGTDM_CONTRAST, NGTDM_BUSYNESS, NGTDM_COMPLEXITY, NGTDM_STRENGTH],
}


def get_feature_names(groups: Optional[List[str]] = None) -> List[str]:
    """
    Get feature names for the requested groups.

    Args:
        groups: Group names from FEATURE_GROUPS; None means every group

    Returns:
        List of feature names in group order
    """
    selected = list(FEATURE_GROUPS) if groups is None else groups

    names: List[str] = []
    for group in selected:
        if group not in FEATURE_GROUPS:
            logger.warning(f"Unknown feature group '{group}' ignored")
            continue
        names.extend(FEATURE_GROUPS[group])

    return names


def expand_feature_selection(selection: Optional[List[str]]) -> Optional[List[str]]:
    """Resolve a mixed list of group names and feature names into feature names."""
    if selection is None:
        return None

    names: List[str] = []
    for item in selection:
        members = get_feature_names([item.lower()]) if item.lower() in FEATURE_GROUPS else [item]
        for name in members:
            if name not in names:
                names.append(name)
    return names
