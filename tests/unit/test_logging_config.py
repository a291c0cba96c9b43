import json
import logging

from kvtool_lib.logging_config import JsonFormatter, LogStats, configure_logging, log_stats


def _record(msg, level=logging.INFO, exc_info=None, **extra):
    rec = logging.LogRecord("kvtool.test", level, __file__, 1, msg, (), exc_info)
    for k, v in extra.items():
        setattr(rec, k, v)
    return rec


def test_json_formatter_fields():
    out = JsonFormatter(app_name="svc").format(_record("hello world", context={"id": 7}))
    payload = json.loads(out)
    assert payload["level"] == "info"
    assert payload["app"] == "svc"
    assert payload["message"] == "hello world"
    assert payload["context"] == {"id": 7}
    assert isinstance(payload["timestamp"], int)
    assert "error" not in payload


def test_json_formatter_without_timestamp_and_app():
    payload = json.loads(JsonFormatter(timestamps=False).format(_record("m")))
    assert "timestamp" not in payload
    assert "app" not in payload


def test_json_formatter_error_field():
    try:
        raise RuntimeError("disk full")
    except RuntimeError:
        import sys
        rec = _record("write failed", level=logging.ERROR, exc_info=sys.exc_info())
    payload = json.loads(JsonFormatter().format(rec))
    assert payload["level"] == "error"
    assert payload["error"] == "disk full"


def test_log_stats_counts_and_reset():
    stats = LogStats()
    stats.handle(_record("a"))
    stats.handle(_record("b", level=logging.DEBUG))
    stats.handle(_record("c"))
    counts = stats.stats()
    assert counts["info"] == 2
    assert counts["debug"] == 1
    assert counts["error"] == 0
    stats.reset()
    assert stats.stats()["info"] == 0


def test_configure_logging_level_from_config(tmp_path):
    p = tmp_path / "kvtool.yml"
    p.write_text("log_level: error\n", encoding="utf-8")
    configure_logging(config_path=p)
    assert logging.getLogger().level == logging.ERROR
    configure_logging(level="info")
    assert logging.getLogger().level == logging.INFO


def test_configure_logging_installs_stats():
    configure_logging(level=logging.DEBUG, json_format=True, app_name="svc")
    root = logging.getLogger()
    assert log_stats in root.handlers
    assert any(isinstance(h.formatter, JsonFormatter) for h in root.handlers)
    log_stats.reset()
    logging.getLogger("kvtool.test").warning("careful")
    assert log_stats.stats()["warning"] == 1
