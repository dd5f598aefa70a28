import json
import logging

from qbitgram.logging_config import JSONFormatter, KeyValueFormatter, get_logger, setup_logging


def _record(logger_name="qbitgram.test", fields=None):
    record = logging.LogRecord(logger_name, logging.INFO, __file__, 1, "Tracking started", (), None)
    if fields is not None:
        record.extra_fields = fields
    return record


class TestFormatters:
    def test_json_includes_fields(self):
        data = json.loads(JSONFormatter().format(_record(fields={"chat_id": 1, "hash": "abc"})))
        assert data["msg"] == "Tracking started"
        assert data["level"] == "info"
        assert data["chat_id"] == 1
        assert data["hash"] == "abc"
        assert data["ts"].endswith("Z")

    def test_key_value_suffix(self):
        line = KeyValueFormatter("%(message)s").format(_record(fields={"chat_id": 1}))
        assert line == "Tracking started chat_id=1"

    def test_plain_record(self):
        assert KeyValueFormatter("%(message)s").format(_record()) == "Tracking started"


class TestStructuredLogger:
    def test_info_with_attaches_fields(self, caplog):
        logger = get_logger("qbitgram.test_structured")
        with caplog.at_level(logging.INFO, logger="qbitgram.test_structured"):
            logger.info_with("Torrent submitted", hash="abc")
        assert caplog.records[-1].extra_fields == {"hash": "abc"}

    def test_setup_logging_level(self):
        root = setup_logging(level="debug", json_format=False)
        assert root.level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING
        setup_logging(level="INFO")
