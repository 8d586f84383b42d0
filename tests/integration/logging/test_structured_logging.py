import json
import logging

from oracle_node.core.logger.logger import JsonFormatter, PlainFormatter, get_logger


def _record(**extra):
    record = logging.LogRecord("oracle_node.test", logging.INFO, __file__, 1, "Submitted transaction", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_extra_fields():
    line = JsonFormatter().format(_record(chain="testnet", request_id="0x01", nonce=5))

    log = json.loads(line)
    assert log["message"] == "Submitted transaction"
    assert log["level"] == "INFO"
    assert log["logger"] == "oracle_node.test"
    assert log["chain"] == "testnet"
    assert log["request_id"] == "0x01"
    assert log["nonce"] == 5


def test_json_formatter_serializes_unknown_types():
    line = JsonFormatter().format(_record(error=ValueError("boom")))

    assert json.loads(line)["error"] == "boom"


def test_plain_formatter_appends_extra_fields():
    line = PlainFormatter().format(_record(chain="testnet"))

    assert "Submitted transaction" in line
    assert "chain=testnet" in line


def test_logger_passes_extra_to_records(caplog):
    caplog.set_level(logging.INFO)
    logger = get_logger("oracle_node.test.records")

    logger.info("Cycle finished", extra={"chain": "testnet", "submitted": 2})

    [record] = [r for r in caplog.records if r.name == "oracle_node.test.records"]
    assert record.chain == "testnet"
    assert record.submitted == 2


def test_get_logger_is_cached():
    assert get_logger("oracle_node.test.cached") is get_logger("oracle_node.test.cached")
