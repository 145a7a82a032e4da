import json
import logging

from pricealert.logging_config import JsonFormatter, configure_logging


class TestConfigureLogging:
    def test_sets_level_and_single_handler(self):
        configure_logging("debug")
        configure_logging("warning")
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self):
        configure_logging("chatty")
        assert logging.getLogger().level == logging.INFO

    def test_json_formatter(self):
        record = logging.LogRecord("pricealert.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
        payload = json.loads(JsonFormatter().format(record))
        assert payload["message"] == "hello world"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "pricealert.test"
