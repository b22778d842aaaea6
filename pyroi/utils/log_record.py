""" Logging utilities: logger setup, in-memory capture and writing captured logs to Excel. """

import contextvars
import logging
import re
from pathlib import Path
from typing import List, Tuple, Optional, Union

from openpyxl import Workbook, load_workbook

from ..config.settings import LOGGING_CONFIG, LOG_LEVEL_MAP, LOG_SHEET_HEADERS, LOG_SHEET_NAME

"""
Per-thread logging context to inject the ROI label into log messages.
Workers set the current label once per record; contextvars keep the value
separate for every worker thread.
"""

CURRENT_LABEL: contextvars.ContextVar[str] = contextvars.ContextVar("CURRENT_LABEL", default="")


def set_label_context(label: Optional[int]) -> None:
    CURRENT_LABEL.set("" if label is None else str(label))


def clear_label_context() -> None:
    CURRENT_LABEL.set("")


# ------------------------------------------------------------
# Logging Filters and Handlers
# ------------------------------------------------------------

class LabelContextFilter(logging.Filter):
    """Prefixes messages with the current ROI label when it is not already mentioned."""

    def filter(self, record: logging.LogRecord) -> bool:
        label = CURRENT_LABEL.get("")
        if not label:
            return True

        msg = record.getMessage()
        if not re.search(rf"\bROI {re.escape(label)}\b", msg):
            record.msg = f"ROI {label}: {msg}"
            record.args = None
        return True


class MemoryLogHandler(logging.Handler):
    """Stores log records in memory for later use."""

    def __init__(self):
        super().__init__()
        self.records: List[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        if record.levelno >= self.level:
            self.records.append(self.format(record))

    def get_logs(self) -> List[str]:
        return self.records.copy()

    def clear(self) -> None:
        self.records.clear()


# ------------------------------------------------------------
# Log Writing to Excel
# ------------------------------------------------------------

def log_to_excel(excel_path: Union[str, Path], logs: List[str], sheet_name: str = LOG_SHEET_NAME) -> None:
    """Write parsed logs into an Excel sheet."""
    excel_path = Path(excel_path)
    excel_path.parent.mkdir(parents=True, exist_ok=True)

    workbook = create_or_load_workbook(excel_path)
    worksheet = ensure_sheet_exists(workbook, sheet_name, LOG_SHEET_HEADERS)

    append_logs_to_sheet(worksheet, logs)
    workbook.save(excel_path)


def create_or_load_workbook(path: Path) -> Workbook:
    """Load an existing workbook or create a new one."""
    if path.exists():
        return load_workbook(path)

    workbook = Workbook()
    # drop the default empty sheet; named sheets are created on demand
    workbook.remove(workbook.active)
    return workbook


def ensure_sheet_exists(workbook: Workbook, sheet_name: str, headers: List[str]):
    """Ensure a sheet exists and has headers."""
    if sheet_name not in workbook.sheetnames:
        sheet = workbook.create_sheet(title=sheet_name)
        sheet.append(headers)
    else:
        sheet = workbook[sheet_name]
    return sheet


def append_logs_to_sheet(sheet, logs: List[str]) -> None:
    """Append parsed log entries to the Excel sheet."""
    for line in logs:
        level, message = parse_log_level_and_message(line)
        sheet.append([extract_label(message), level, message])


# ------------------------------------------------------------
# Log Parsing
# ------------------------------------------------------------

def parse_log_level_and_message(log_line: str) -> Tuple[str, str]:
    """Extract log level and message from formatted log line."""
    parts = log_line.split(" - ", maxsplit=2)
    if len(parts) == 3:
        _, level, message = parts
        return level.strip(), message.strip()
    return "INFO", log_line.strip()


def extract_label(message: str) -> Optional[str]:
    """Extract the ROI label from 'ROI <label>' in a message."""
    match = re.search(r"\bROI (?P<label>-?\d+)\b", message)
    return match.group("label") if match else None


# ------------------------------------------------------------
# Utility Logging
# ------------------------------------------------------------

def get_levels_from_mode(log_mode_level: str = "all") -> Tuple[Optional[int], Optional[int]]:
    """Return console and memory logging levels based on the report mode."""
    mode_config = LOG_LEVEL_MAP.get(log_mode_level, LOG_LEVEL_MAP["all"])
    console_level = getattr(logging, mode_config['console_level']) if mode_config['console_level'] else None
    memory_level = getattr(logging, mode_config['memory_level']) if mode_config['memory_level'] else None
    return console_level, memory_level


def create_console_handler(console_level: Optional[int], log_level_mode: str = "all") -> Optional[
    logging.StreamHandler]:
    """Create a console handler if console_level is set."""
    if console_level is None:
        return None

    handler = logging.StreamHandler()
    handler.setLevel(console_level)

    if log_level_mode == "info":
        handler.addFilter(lambda record: record.levelno == logging.INFO)

    handler.setFormatter(logging.Formatter(LOGGING_CONFIG['console_format']))
    return handler


def configure_memory_handler(memory_handler: MemoryLogHandler, memory_level: Optional[int],
                             log_model_level: str = "all") -> None:
    """Configure memory handler if memory_level is set."""
    if memory_level is None:
        return
    memory_handler.setLevel(memory_level)

    if log_model_level == "info":
        memory_handler.addFilter(lambda record: record.levelno == logging.INFO)

    memory_handler.setFormatter(logging.Formatter(LOGGING_CONFIG['memory_format']))


def setup_logging(memory_handler: Optional[MemoryLogHandler] = None, log_model_level: str = "all") -> Tuple[
    logging.Logger, Optional[MemoryLogHandler]]:
    """
    Setup standard logging with console and optional memory handler.
    Logging levels are determined by the report mode.
    """
    logger = logging.getLogger("Dev_logger")
    logger.setLevel(logging.DEBUG)
    logger.disabled = False
    if logger.hasHandlers():
        logger.handlers.clear()
    for existing in list(logger.filters):
        if isinstance(existing, LabelContextFilter):
            logger.removeFilter(existing)

    console_level, memory_level = get_levels_from_mode(log_model_level)

    # Silent mode
    if console_level is None and memory_level is None:
        logger.disabled = True
        return logger, memory_handler

    logger.addFilter(LabelContextFilter())

    # Console
    console_handler = create_console_handler(console_level, log_model_level)
    if console_handler:
        logger.addHandler(console_handler)

    # Memory
    if memory_handler:
        configure_memory_handler(memory_handler, memory_level, log_model_level)
        if memory_level is not None:
            logger.addHandler(memory_handler)

    return logger, memory_handler


def initialize_logging(log_mode_level: str = "all") -> Tuple[logging.Logger, MemoryLogHandler]:
    """Initialize logger and memory handler."""
    memory_handler = MemoryLogHandler()
    _logger, memory_handler = setup_logging(memory_handler, log_mode_level)
    return _logger, memory_handler
