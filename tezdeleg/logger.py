"""Logging setup: text or JSON lines, optional file output and GELF over UDP."""

from __future__ import annotations

import json
import logging
import os
import socket
import sys
import zlib
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from urllib.parse import urlsplit

LOGGER_NAME = "tezdeleg"
DEFAULT_GELF_PORT = 12201

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

_SYSLOG_LEVELS = {
    logging.CRITICAL: 2,
    logging.ERROR: 3,
    logging.WARNING: 4,
    logging.INFO: 6,
    logging.DEBUG: 7,
}

_CHUNK_MAGIC = b"\x1e\x0f"
_CHUNK_HEADER = 12
_MAX_CHUNKS = 128


@dataclass
class GraylogConfig:
    """Where to send GELF messages."""

    enabled: bool = False
    url: str = ""
    port: int = 0
    facility: str = ""


@dataclass
class LoggerConfig:
    """Logging configuration."""

    level: str = "info"
    format: str = "text"
    graylog: GraylogConfig = field(default_factory=GraylogConfig)
    enable_file: bool = False
    file_path: str = ""


def _rfc3339(created: float) -> str:
    stamp = datetime.fromtimestamp(created).astimezone().isoformat(timespec="seconds")
    return stamp[:-6] + "Z" if stamp.endswith("+00:00") else stamp


def _level_name(record: logging.LogRecord) -> str:
    return record.levelname.lower()


class _TextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage().replace('"', '\\"')
        return f'time="{_rfc3339(record.created)}" level={_level_name(record)} msg="{message}"'


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return json.dumps(
            {
                "level": _level_name(record),
                "msg": record.getMessage(),
                "time": _rfc3339(record.created),
            }
        )


class GelfHandler(logging.Handler):
    """Send log records as compressed GELF datagrams, chunked when large."""

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_GELF_PORT,
        extra: Optional[dict] = None,
        chunk_size: int = 1420,
    ) -> None:
        super().__init__()
        self.host = host
        self.port = port
        self.extra = dict(extra or {})
        self.chunk_size = chunk_size
        self.source = get_hostname()
        self._socket: Optional[socket.socket] = None

    def _encode(self, record: logging.LogRecord) -> bytes:
        message = record.getMessage()
        payload = {
            "version": "1.1",
            "host": self.source,
            "short_message": message.split("\n", 1)[0],
            "full_message": self.format(record),
            "timestamp": record.created,
            "level": _SYSLOG_LEVELS.get(record.levelno, 6),
            "_file": record.pathname,
            "_line": record.lineno,
        }
        payload.update({f"_{key}": value for key, value in self.extra.items()})
        return zlib.compress(json.dumps(payload).encode("utf-8"))

    def _datagrams(self, data: bytes) -> list[bytes]:
        if len(data) <= self.chunk_size:
            return [data]
        body = self.chunk_size - _CHUNK_HEADER
        pieces = [data[start:start + body] for start in range(0, len(data), body)]
        if len(pieces) > _MAX_CHUNKS:
            raise ValueError(f"GELF message needs {len(pieces)} chunks, at most {_MAX_CHUNKS} allowed")
        message_id = os.urandom(8)
        total = len(pieces)
        return [
            _CHUNK_MAGIC + message_id + bytes([sequence, total]) + piece
            for sequence, piece in enumerate(pieces)
        ]

    def emit(self, record):
        """Encode ``record`` and send it to the configured address."""
        try:
            if self._socket is None:
                self._socket = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
            for datagram in self._datagrams(self._encode(record)):
                self._socket.sendto(datagram, (self.host, self.port))
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        if self._socket is not None:
            self._socket.close()
            self._socket = None
        super().close()


def _graylog_address(cfg: GraylogConfig) -> tuple[str, int]:
    target = cfg.url if "://" in cfg.url else f"//{cfg.url}"
    parts = urlsplit(target)
    host = parts.hostname or cfg.url
    if cfg.port > 0:
        return host, cfg.port
    return host, parts.port or DEFAULT_GELF_PORT


def _add_graylog_handler(logger: logging.Logger, cfg: GraylogConfig) -> None:
    host, port = _graylog_address(cfg)
    logger.addHandler(GelfHandler(host, port, extra={"facility": cfg.facility}))
    logger.info("Graylog logging enabled")


def setup(cfg: LoggerConfig) -> logging.Logger:
    """Configure and return the package logger according to ``cfg``."""
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = False
    logger.setLevel(_LEVELS.get(cfg.level, logging.INFO))

    formatter: logging.Formatter = _JsonFormatter() if cfg.format == "json" else _TextFormatter()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    logger.addHandler(console)

    if cfg.enable_file and cfg.file_path:
        try:
            file_handler = logging.FileHandler(cfg.file_path, mode="a", encoding="utf-8")
        except OSError as exc:
            logger.warning("Failed to log to file %s: %s", cfg.file_path, exc)
        else:
            file_handler.setFormatter(formatter)
            logger.removeHandler(console)
            logger.addHandler(file_handler)

    if cfg.graylog.enabled and cfg.graylog.url:
        _add_graylog_handler(logger, cfg.graylog)

    logger.info("Logger initialized")
    return logger


def get_hostname() -> str:
    """Return this machine's host name, or "unknown" when it cannot be read."""
    try:
        return socket.gethostname()
    except OSError:
        return "unknown"