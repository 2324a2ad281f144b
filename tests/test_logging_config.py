"""Tests for logging setup helpers."""

import logging


class TestSetupLogging:

    def test_console_handler_only(self):
        from logging_config import setup_logging

        logger = setup_logging("test.console_only", level=logging.DEBUG)

        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.StreamHandler)

    def test_repeated_setup_does_not_duplicate_handlers(self):
        from logging_config import setup_logging

        setup_logging("test.repeat")
        logger = setup_logging("test.repeat")

        assert len(logger.handlers) == 1

    def test_log_file(self, tmp_path):
        from logging_config import setup_logging

        log_file = tmp_path / "logs" / "fetch_maps.log"
        logger = setup_logging("test.file", log_file=log_file, console_output=False)
        logger.info("hello")
        for handler in logger.handlers:
            handler.flush()

        assert len(logger.handlers) == 1
        assert "hello" in log_file.read_text(encoding="utf-8")

        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)

    def test_http_client_loggers_quieted_at_info(self):
        from logging_config import setup_logging

        setup_logging("test.quiet", level=logging.INFO, noisy_loggers=("test.noisy",))

        assert logging.getLogger("test.noisy").level == logging.WARNING

    def test_http_client_loggers_verbose_at_debug(self):
        from logging_config import setup_logging

        setup_logging("test.verbose", level=logging.DEBUG, noisy_loggers=("test.noisy_debug",))

        assert logging.getLogger("test.noisy_debug").level == logging.DEBUG
