import logging
import threading

from openpyxl import load_workbook

from pyroi.utils.log_record import (
    LabelContextFilter,
    MemoryLogHandler,
    clear_label_context,
    extract_label,
    get_levels_from_mode,
    initialize_logging,
    log_to_excel,
    parse_log_level_and_message,
    set_label_context,
    setup_logging,
)


def test_levels_from_mode():
    assert get_levels_from_mode("none") == (None, None)
    assert get_levels_from_mode("error") == (logging.ERROR, logging.ERROR)
    assert get_levels_from_mode("all") == (logging.INFO, logging.INFO)
    # unknown modes fall back to "all"
    assert get_levels_from_mode("chatty") == (logging.INFO, logging.INFO)


def test_memory_handler_captures_formatted_lines():
    logger, memory_handler = initialize_logging("all")
    logger.info("hello")
    logger.debug("not captured")

    logs = memory_handler.get_logs()
    assert len(logs) == 1
    assert logs[0].endswith(" - INFO - hello")

    memory_handler.clear()
    assert memory_handler.get_logs() == []


def test_error_mode_drops_info():
    logger, memory_handler = initialize_logging("error")
    logger.info("quiet")
    logger.error("loud")
    assert [line.split(" - ", 2)[2] for line in memory_handler.get_logs()] == ["loud"]


def test_info_mode_keeps_only_info():
    logger, memory_handler = initialize_logging("info")
    logger.info("kept")
    logger.warning("dropped")
    assert len(memory_handler.get_logs()) == 1


def test_none_mode_disables_logger():
    logger, memory_handler = initialize_logging("none")
    logger.error("silenced")
    assert logger.disabled
    assert memory_handler.get_logs() == []


def test_setup_logging_does_not_stack_filters():
    handler = MemoryLogHandler()
    setup_logging(handler, "all")
    logger, _ = setup_logging(handler, "all")
    assert sum(isinstance(f, LabelContextFilter) for f in logger.filters) == 1


def test_label_context_prefixes_messages():
    logger, memory_handler = initialize_logging("all")

    set_label_context(7)
    try:
        logger.info("computing")
        logger.info("ROI 7 already named")
        logger.info("%d pixels", 12)
    finally:
        clear_label_context()
    logger.info("no label")

    messages = [line.split(" - ", 2)[2] for line in memory_handler.get_logs()]
    assert messages == ["ROI 7: computing", "ROI 7 already named", "ROI 7: 12 pixels", "no label"]


def test_label_context_is_per_thread():
    logger, memory_handler = initialize_logging("all")
    set_label_context(1)

    def worker():
        set_label_context(2)
        logger.info("from worker")
        clear_label_context()

    thread = threading.Thread(target=worker)
    thread.start()
    thread.join()
    logger.info("from main")
    clear_label_context()

    messages = [line.split(" - ", 2)[2] for line in memory_handler.get_logs()]
    assert messages == ["ROI 2: from worker", "ROI 1: from main"]


def test_parse_helpers():
    assert parse_log_level_and_message("2024-01-01 - WARNING - ROI 12: odd") == ("WARNING", "ROI 12: odd")
    assert parse_log_level_and_message("bare line") == ("INFO", "bare line")
    assert extract_label("ROI 12: odd") == "12"
    assert extract_label("no label here") is None


def test_log_to_excel_appends(tmp_path):
    path = tmp_path / "logs" / "run.xlsx"
    log_to_excel(path, ["t - INFO - ROI 3: started"])
    log_to_excel(path, ["t - ERROR - failed"])

    workbook = load_workbook(path)
    assert workbook.sheetnames == ["Report"]
    rows = list(workbook["Report"].iter_rows(values_only=True))
    assert rows == [
        ("Label", "Level", "Message"),
        ("3", "INFO", "ROI 3: started"),
        (None, "ERROR", "failed"),
    ]
