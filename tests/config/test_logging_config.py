# tests/config/test_logging_config.py
import logging

from order_tracking.config.logging_config import get_logger


def _reset(name):
    lg = logging.getLogger(name)
    for h in list(lg.handlers):
        lg.removeHandler(h)
        h.close()
    return lg


def test_get_logger_idempotent_no_duplicate_handlers(tmp_path):
    _reset("ot.test")
    log_path = tmp_path / "run.log"
    logger = get_logger("ot.test", level="DEBUG", log_file=log_path, console=False)
    logger2 = get_logger("ot.test", level="DEBUG", log_file=log_path, console=False)

    assert logger is logger2
    assert len(logger.handlers) == 1


def test_relative_log_file_is_not_added_twice(tmp_path, monkeypatch):
    _reset("ot.relative")
    monkeypatch.chdir(tmp_path)
    get_logger("ot.relative", log_file="logs/app.log", console=False)
    lg = get_logger("ot.relative", log_file=tmp_path / "logs" / "app.log", console=False)
    assert len(lg.handlers) == 1


def test_get_logger_adds_console_handler():
    _reset("ot.console")
    logger = get_logger("ot.console", level="INFO", console=True, log_file=None)

    shs = [h for h in logger.handlers if isinstance(h, logging.StreamHandler)]
    assert len(shs) == 1


def test_get_logger_writes_to_file(tmp_path):
    _reset("ot.file")
    log_file = tmp_path / "logs" / "app.log"
    logger = get_logger("ot.file", level="INFO", log_file=log_file, console=False)
    logger.info("lookup for #1002")

    assert log_file.exists()
    content = log_file.read_text(encoding="utf-8")
    assert "lookup for #1002" in content
    assert "| INFO | ot.file |" in content


def test_get_logger_respects_level_env(monkeypatch, tmp_path):
    _reset("ot.level.env")
    monkeypatch.setenv("LOG_LEVEL", "ERROR")
    log_file = tmp_path / "lvl.log"
    logger = get_logger("ot.level.env", log_file=log_file, console=False)

    logger.info("should NOT appear")
    logger.error("should appear")

    text = log_file.read_text(encoding="utf-8")
    assert "should appear" in text
    assert "should NOT appear" not in text


def test_child_loggers_share_package_handlers(tmp_path):
    _reset("ot.pkg")
    log_file = tmp_path / "pkg.log"
    get_logger("ot.pkg", level="DEBUG", log_file=log_file, console=False)

    logging.getLogger("ot.pkg.api.carriers").warning("UPS fallback")

    assert "UPS fallback" in log_file.read_text(encoding="utf-8")


def test_multiple_calls_different_targets_do_not_duplicate(tmp_path):
    name = "ot.multi"
    _reset(name)

    lg1 = get_logger(name, level="INFO", console=True, log_file=None)
    lg2 = get_logger(name, level="INFO", console=True, log_file=tmp_path / "x.log")

    assert lg1 is lg2
    assert len(lg2.handlers) == 2


def test_http_library_debug_logs_are_quieted():
    _reset("ot.quiet")
    logging.getLogger("urllib3").setLevel(logging.DEBUG)
    get_logger("ot.quiet", level="DEBUG", console=False)
    assert logging.getLogger("urllib3").level == logging.WARNING
