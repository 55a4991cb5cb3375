"""Test logging setup"""

import io
import logging

from music_search.core.logger import (
    DroppedItemHandler,
    ErrorOnlyFilter,
    log_dropped_item,
    setup_logging,
    shutdown_logging,
)


class TestSetupLogging:
    """Test handler installation"""

    def test_console_only(self):
        """Without a directory only the console handler is installed"""
        stream = io.StringIO()
        setup_logging(verbose=False, use_colors=False, stream=stream)

        logger = logging.getLogger("music_search.tests")
        logger.debug("hidden")
        logger.info("shown")

        assert stream.getvalue() == "INFO: shown\n"

    def test_verbose_shows_debug(self):
        """Verbose mode lowers the console level"""
        stream = io.StringIO()
        setup_logging(verbose=True, use_colors=False, stream=stream)
        logging.getLogger("music_search.tests").debug("details")
        assert "DEBUG: details" in stream.getvalue()

    def test_log_files(self, tmp_path):
        """Full, error and dropped item logs are written"""
        setup_logging(tmp_path / "logs", use_colors=False, stream=io.StringIO())
        logger = logging.getLogger("music_search.tests")

        logger.info("searching")
        logger.error("request failed")
        log_dropped_item(logger, "qqmusic", "song", "missing 'mid'", {"id": 1})
        shutdown_logging()

        def read(prefix):
            (path,) = (tmp_path / "logs").glob(f"{prefix}_*.log")
            return path.read_text(encoding="utf-8")

        full = read("log_full")
        assert "searching" in full and "request failed" in full

        errors = read("log_errors")
        assert "request failed" in errors
        assert "searching" not in errors

        assert read("dropped_items") == "[qqmusic] song: missing 'mid'\n{\"id\": 1}\n\n"


class TestHandlers:
    """Test individual handlers and filters"""

    def test_error_only_filter(self):
        """Only ERROR and above pass"""
        error_filter = ErrorOnlyFilter()
        assert error_filter.filter(logging.makeLogRecord({"levelno": logging.ERROR}))
        assert not error_filter.filter(logging.makeLogRecord({"levelno": logging.WARNING}))

    def test_dropped_item_handler_ignores_other_records(self, tmp_path):
        """Records without dropped item extras are not written"""
        handler = DroppedItemHandler(tmp_path / "dropped.log")
        handler.open()
        handler.emit(logging.makeLogRecord({"msg": "plain warning"}))
        handler.close()
        handler.close()
        assert (tmp_path / "dropped.log").read_text(encoding="utf-8") == ""
