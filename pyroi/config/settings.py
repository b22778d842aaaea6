"""
Configuration settings for the ROI feature computation pipeline.
"""

# =============================================================================
# PROCESSING PARAMETERS
# =============================================================================

# Default ROI processing parameters
DEFAULT_FEATURE_PARAMS = {
    'roi_num_workers': "auto",
    'roi_enable_parallelism': True,
    'roi_osized_pixel_threshold': 1_000_000,
    'roi_methods': None,
    'roi_features': None,
    'roi_report': "all",
}

# =============================================================================
# THRESHOLDS AND LIMITS
# =============================================================================

# Value substituted for a feature when the ROI is numerically degenerate
BAD_ROI_FVAL = 0.0

# Valid number of workers range
MIN_WORKERS = 1
MAX_WORKERS = 32

# Valid out-of-size threshold range (bounding-box pixel count)
MIN_OSIZED_PIXEL_THRESHOLD = 1
MAX_OSIZED_PIXEL_THRESHOLD = 1_000_000_000

# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

# Map your mode to actual log levels
LOG_LEVEL_MAP = {
    "none": {'console_level': None, 'memory_level': None},  # No logs
    "error": {'console_level': 'ERROR', 'memory_level': 'ERROR'},  # Errors only
    "warning": {'console_level': 'WARNING', 'memory_level': 'WARNING'},  # Warnings only
    "info": {'console_level': 'INFO', 'memory_level': 'INFO'},  # Info only
    "all": {'console_level': 'INFO', 'memory_level': 'INFO'},  # All (INFO, WARNING, ERROR)
}

LOGGING_CONFIG = {
    'console_format': '%(asctime)s - %(levelname)s - %(message)s',
    'memory_format': '%(asctime)s - %(levelname)s - %(message)s'
}

# Sheet used when captured logs are written to a workbook
LOG_SHEET_NAME = "Report"
LOG_SHEET_HEADERS = ["Label", "Level", "Message"]
