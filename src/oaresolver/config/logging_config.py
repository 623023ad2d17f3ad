"""Root logger setup: bracketed level tags, UTC timestamps, optional file and syslog."""

from __future__ import annotations

import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "crit": logging.CRITICAL,
    "critical": logging.CRITICAL,
}

_TAGS = {
    logging.DEBUG: "[debug]",
    logging.INFO: "[info]",
    logging.WARNING: "[warn]",
    logging.ERROR: "[error]",
    logging.CRITICAL: "[crit]",
}


def _level_tag(levelno: int) -> str:
    return _TAGS.get(levelno, f"[lvl{levelno}]")


class SyslogFormatter(logging.Formatter):
    """Formatter for syslog output; syslog supplies the timestamp."""

    def __init__(self, tag: str = "oaresolver") -> None:
        super().__init__()
        self._tag = tag

    def format(self, record):
        record.level_tag = _level_tag(record.levelno)
        return f"{self._tag}: {record.level_tag} {record.name}: {record.getMessage()}"


class BracketLevelFormatter(logging.Formatter):
    """Bracketed lowercase level tags with UTC ISO-8601 timestamps."""

    def formatTime(self, record, datefmt=None):
        return datetime.fromtimestamp(record.created, timezone.utc).strftime(
            "%Y-%m-%dT%H:%M:%SZ"
        )

    def format(self, record):
        record.level_tag = _level_tag(record.levelno)
        return super().format(record)


def parse_level(value: Any, default: int = logging.INFO) -> int:
    """Map 'debug'/'info'/... (any case) to a logging level, else default."""
    return _LEVELS.get(str(value).strip().lower(), default)


def _file_handler(file_path: str, formatter: logging.Formatter) -> logging.Handler:
    path = Path(file_path).expanduser().resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(str(path), mode="a", encoding="utf-8")
    handler.setFormatter(formatter)
    return handler


def _syslog_handler(opts: Dict[str, Any]) -> logging.Handler:
    """Build a SysLogHandler from {'address', 'facility', 'tag'}."""
    cls = logging.handlers.SysLogHandler
    facility_name = "LOG_" + str(opts.get("facility", "user")).upper()
    handler = cls(
        address=opts.get("address", "/dev/log"),
        facility=getattr(cls, facility_name, cls.LOG_USER),
    )
    handler.setFormatter(SyslogFormatter(tag=str(opts.get("tag", "oaresolver"))))
    return handler


def init_logging(cfg: Optional[Dict[str, Any]]) -> None:
    """
    Configure the root logger for the oaresolver CLI.

    Args:
        cfg: Mapping with optional keys:
            - level: debug, info, warn, error, crit (default: info)
            - stderr: log to stderr (default: True)
            - file: path of a log file to append to
            - syslog: True or a mapping with address, facility and tag
              (defaults: /dev/log, USER, oaresolver)
            - dnspython_level: level for the 'dns' library loggers
              (default: warning)

    Example config:
        {
            "level": "debug",
            "file": "~/.oaresolver/oaresolver.log",
            "syslog": {"tag": "oaresolver-wallet"}
        }

    Existing root handlers are replaced, so calling this twice is safe.
    """
    cfg = cfg or {}
    formatter = BracketLevelFormatter(
        fmt="%(asctime)s %(level_tag)s %(name)s: %(message)s"
    )

    handlers = []
    if cfg.get("stderr", True):
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(formatter)
        handlers.append(console)

    file_path = cfg.get("file")
    if isinstance(file_path, str) and file_path.strip():
        handlers.append(_file_handler(file_path.strip(), formatter))

    syslog_error = None
    syslog_cfg = cfg.get("syslog")
    if syslog_cfg:
        try:
            handlers.append(
                _syslog_handler(syslog_cfg if isinstance(syslog_cfg, dict) else {})
            )
        except (OSError, ValueError) as e:  # pragma: no cover - environment-specific
            syslog_error = e

    root = logging.getLogger()
    for old in root.handlers[:]:
        root.removeHandler(old)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(parse_level(cfg.get("level", "info")))

    if syslog_error is not None:
        root.warning("Failed to configure syslog: %s", syslog_error)  # pragma: no cover

    logging.getLogger("dns").setLevel(
        parse_level(cfg.get("dnspython_level", "warning"), logging.WARNING)
    )
    logging.captureWarnings(True)
