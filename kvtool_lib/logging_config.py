from __future__ import annotations
import json
import logging
from pathlib import Path
import yaml
from typing import Dict, Optional, Union

TEXT_FORMAT = '%(asctime)s %(levelname)s [%(name)s]: %(message)s'
DEFAULT_LOG_LEVEL = logging.WARNING


class JsonFormatter(logging.Formatter):
    """Render each record as one JSON object per line.

    A record looks like
    {"timestamp": 1519317784, "level": "info", "app": "kvtool",
     "logger": "kvtool_lib.cli", "message": "...", "context": [...]}.
    `app` appears only when configured, `error` only when the record carries
    exception info, `context` only when passed via `extra={"context": ...}`.
    """

    def __init__(self, app_name: Optional[str] = None, timestamps: bool = True) -> None:
        super().__init__()
        self.app_name = app_name
        self.timestamps = timestamps

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, object] = {}
        if self.timestamps:
            payload['timestamp'] = int(record.created)
        payload['level'] = record.levelname.lower()
        if self.app_name:
            payload['app'] = self.app_name
        payload['logger'] = record.name
        context = getattr(record, 'context', None)
        if context is not None:
            payload['context'] = context
        if record.exc_info and record.exc_info[1] is not None:
            payload['error'] = str(record.exc_info[1])
        payload['message'] = record.getMessage()
        return json.dumps(payload, default=str)


class LogStats(logging.Handler):
    """Handler that only counts emitted records per level name."""

    def __init__(self) -> None:
        super().__init__(level=logging.NOTSET)
        self._counts: Dict[str, int] = {}

    def emit(self, record: logging.LogRecord) -> None:
        name = record.levelname.lower()
        self._counts[name] = self._counts.get(name, 0) + 1

    def stats(self) -> Dict[str, int]:
        counts = {'debug': 0, 'info': 0, 'warning': 0, 'error': 0, 'critical': 0}
        counts.update(self._counts)
        return counts

    def reset(self) -> None:
        self._counts = {}


log_stats = LogStats()


def _level_from_config(config_path: Path) -> Optional[int]:
    try:
        with config_path.open('r', encoding='utf-8') as _f:
            _cfg = yaml.safe_load(_f) or {}
    except (OSError, yaml.YAMLError):
        return None
    _lvl = _cfg.get('log_level') if isinstance(_cfg, dict) else None
    if isinstance(_lvl, str):
        _numeric = getattr(logging, _lvl.upper(), None)
        if isinstance(_numeric, int):
            return _numeric
    return None


def configure_logging(
    level: Union[str, int, None] = None,
    config_path: Optional[Path] = None,
    json_format: bool = False,
    app_name: Optional[str] = None,
) -> logging.Logger:
    """Configure root logging for kvtool.

    The level comes from `level`, else from the `log_level` entry of the
    YAML config at `config_path`, else WARNING. Existing root handlers are
    replaced by one stream handler (text or JSON) plus the `log_stats`
    counter. Returns a module logger for the caller.
    """
    if isinstance(level, str):
        resolved = getattr(logging, level.upper(), None)
        if not isinstance(resolved, int):
            raise ValueError(f'unknown log level {level!r}')
    elif isinstance(level, int):
        resolved = level
    elif config_path is not None and config_path.exists():
        resolved = _level_from_config(config_path)
    else:
        resolved = None
    if resolved is None:
        resolved = DEFAULT_LOG_LEVEL

    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)
    stream = logging.StreamHandler()
    if json_format:
        stream.setFormatter(JsonFormatter(app_name=app_name))
    else:
        stream.setFormatter(logging.Formatter(TEXT_FORMAT))
    logging.basicConfig(level=resolved, handlers=[stream, log_stats])
    logger = logging.getLogger(__name__)

    # Keep known noisy libraries quiet by default
    logging.getLogger('httpx').setLevel(max(resolved, logging.WARNING))
    logging.getLogger('httpcore').setLevel(max(resolved, logging.WARNING))
    logger.debug('Log level set to %s', logging.getLevelName(resolved))

    return logger
