from __future__ import annotations

import json
import logging

from elpais_opinion.infra import logging as elog


def _record(msg: str = "hello") -> logging.LogRecord:
    return logging.LogRecord("elpais_opinion.test", logging.INFO, __file__, 1, msg, None, None)


def test_mdc_filter_adds_session_suffix() -> None:
    elog.mdc_clear()
    elog.mdc_put("session", "Chrome Desktop")
    try:
        rec = _record()
        assert elog.MDCFilter().filter(rec)
        assert rec.mdc_suffix == " | MDC: session=Chrome Desktop"
    finally:
        elog.mdc_clear()


def test_json_formatter_payload() -> None:
    elog.mdc_put("session", "Edge Desktop")
    try:
        rec = _record("scraped 3 articles")
        elog.MDCFilter().filter(rec)
        payload = json.loads(elog.JSONFormatter().format(rec))
    finally:
        elog.mdc_clear()
    assert payload["message"] == "scraped 3 articles"
    assert payload["level"] == "INFO"
    assert payload["mdc"] == {"session": "Edge Desktop"}
    assert "thread" in payload


def test_logging_config_from_env(monkeypatch) -> None:
    monkeypatch.setenv("EPO_LOG_LEVEL", "warn")
    monkeypatch.setenv("EPO_LOG_JSON", "1")
    conf = elog.build_logging_config()
    assert conf["root"]["level"] == logging.WARNING
    assert conf["handlers"]["console"]["formatter"] == "json"
    assert conf["loggers"]["selenium"]["level"] == "WARNING"


def test_unified_logger_names_and_print(capsys) -> None:
    logger = elog.get_unified_logger("harness", "task")
    assert logger.name == "elpais_opinion.harness.task"
    assert elog.get_unified_logger("harness", "task") is logger
    elog.unified_print("saved", "runs", "save")
    assert "[runs][save] saved" in capsys.readouterr().out


def test_file_handler_attached_once(tmp_path) -> None:
    log_file = tmp_path / "run.log"
    root = logging.getLogger("")
    before = list(root.handlers)
    try:
        elog.attach_file_handler(str(log_file))
        elog.attach_file_handler(str(log_file))
        added = [h for h in root.handlers if h not in before]
        assert len(added) == 1
        root.warning("written to file")
        added[0].flush()
        assert "written to file" in log_file.read_text(encoding="utf-8")
    finally:
        for h in root.handlers[:]:
            if h not in before:
                root.removeHandler(h)
                h.close()


def test_trace_level_and_unified_print_levels(monkeypatch, caplog) -> None:
    monkeypatch.setenv("EPO_LOG_LEVEL", "trace")
    assert elog.build_logging_config()["root"]["level"] == elog.TRACE_LEVEL
    with caplog.at_level(elog.TRACE_LEVEL, logger="elpais_opinion.harness"):
        elog.unified_print("tick", "harness", "task", level="trace")
        elog.unified_print("boom", "harness", "task", level="fatal")
    assert [(r.levelname, r.getMessage()) for r in caplog.records] == [("TRACE", "tick"), ("CRITICAL", "boom")]
