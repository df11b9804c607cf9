import json
import sys

from loguru import logger as _logger

from packages.lucid_lib.logging import LogManager, get_component_logger


def test_log_manager_writes_json_lines(tmp_path):
    manager = LogManager("unit", debug=True, log_dir=tmp_path)
    try:
        manager.get_logger("probe").info("hello")
        _logger.complete()
    finally:
        _logger.remove()
        _logger.add(lambda message: sys.stderr.write(message))

    record = json.loads((tmp_path / "unit.json.log").read_text(encoding="utf-8").splitlines()[-1])
    assert record["record"]["message"] == "hello"
    assert record["record"]["extra"] == {"app": "unit", "context": "probe"}


def test_component_logger_keeps_parent_bindings():
    parent = _logger.bind(app="svc", context="outer")
    messages = []
    sink = _logger.add(lambda message: messages.append(message.record["extra"]))
    try:
        get_component_logger("inner", parent).info("x")
        get_component_logger("solo").info("y")
    finally:
        _logger.remove(sink)

    assert messages == [{"app": "svc", "context": "inner"}, {"context": "solo"}]
