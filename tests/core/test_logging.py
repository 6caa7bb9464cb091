import json
import logging

from pathcraft.core.logging import Logger, log


def test_json_log_carries_extra_fields(tmp_path):
    Logger.setup_logging(log_dir=tmp_path)
    try:
        log("Recorded interaction", level="debug", step_type="click", selector="#go")
        for handler in Logger.get_logger().handlers:
            handler.flush()

        lines = (tmp_path / "events.json").read_text().splitlines()
        event = json.loads(lines[-1])
        assert event["message"] == "Recorded interaction"
        assert event["levelname"] == "DEBUG"
        assert event["step_type"] == "click"
        assert event["selector"] == "#go"
        assert "Recorded interaction" in (tmp_path / "master.log").read_text()
    finally:
        Logger.setup_logging()


def test_setup_replaces_handlers(tmp_path):
    Logger.setup_logging(log_dir=tmp_path)
    Logger.setup_logging(verbose=True)

    handlers = Logger.get_logger().handlers
    assert len(handlers) == 1
    assert handlers[0].level == logging.DEBUG


def test_unknown_level_falls_back_to_info(caplog):
    with caplog.at_level(logging.INFO, logger="pathcraft"):
        log("Something happened", level="chatty")
    assert caplog.records[-1].levelname == "INFO"
