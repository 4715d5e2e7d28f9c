from __future__ import annotations

import json
import logging
import sys
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, TextIO

if TYPE_CHECKING:
    from solaredge_client.config import LoggingConfig

CLIENT_LOGGER = "solaredge_client"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Connection-pool chatter from requests; only shown when listed in debug_modules.
_NOISY_LOGGERS = ("urllib3",)


class ConsoleLog:
    """Console logging for scripts built on the client."""

    def __init__(
        self,
        level: str = "INFO",
        quiet: bool = False,
        debug_modules: Iterable[str] | None = None,
        stream: TextIO | None = None,
    ):
        self.level = level.upper()
        self.quiet = quiet
        self.debug_modules = list(debug_modules or [])
        self.stream = stream

    @classmethod
    def from_config(cls, cfg: "LoggingConfig", stream: TextIO | None = None) -> "ConsoleLog":
        return cls(cfg.console_level, cfg.console_quiet, cfg.debug_modules, stream=stream)

    def setup(self) -> logging.Logger:
        root = logging.getLogger()
        root.handlers.clear()
        root.setLevel(logging.DEBUG)

        if not self.quiet:
            handler = logging.StreamHandler(self.stream or sys.stdout)
            handler.setLevel(getattr(logging, self.level, logging.INFO))
            handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
            root.addHandler(handler)

        for name in _NOISY_LOGGERS:
            if name not in self.debug_modules:
                logging.getLogger(name).setLevel(logging.WARNING)
        for name in self.debug_modules:
            logging.getLogger(name).setLevel(logging.DEBUG)

        return logging.getLogger(CLIENT_LOGGER)


@dataclass
class RequestLogEntry:
    timestamp: str
    endpoint: str
    path: str
    parameters: dict[str, str]
    status: int | None
    record_count: int | None
    error: str | None


class StructuredLog:
    """Machine-readable request log, one JSON object per line."""

    def __init__(self, path: str | None, enabled: bool = False):
        self.enabled = enabled and bool(path)
        self.path = Path(path).expanduser() if path else None
        if self.enabled and self.path:
            self.path.parent.mkdir(parents=True, exist_ok=True)

    def write(self, entry: RequestLogEntry) -> None:
        if not self.enabled or not self.path:
            return
        try:
            with self.path.open("a", encoding="utf-8") as fh:
                fh.write(json.dumps(asdict(entry)) + "\n")
        except OSError as exc:  # pragma: no cover - best-effort logging
            logging.getLogger(__name__).debug("Structured log write skipped: %s", exc)


def get_logger(name: str) -> logging.Logger:
    if name == CLIENT_LOGGER or name.startswith(CLIENT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{CLIENT_LOGGER}.{name}")
