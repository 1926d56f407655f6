"""
CascadeBot Logger - Persistent file-based logging.

Writes levelled logs to rotating files so the scheduler's state changes and
the tuner's round-by-round search can be reviewed after a match, without a
live console.

Usage
-----
    from CascadeBot.logger import get_logger

    log = get_logger()
    log.info("Round started")
    log.debug("Primary mine: %s", mine, tick=tick)

    # Game-specific helpers
    log.game_event("STATE", "WAITING → BUILDING_SOLDIER", tick=412)
    log.command("TRAIN", handle=17, target="SOLDIER", tick=412)
    log.tuner(search_state, round_number=6)

The log file lives at  logs/cascade_<timestamp>.log  under the working
directory. Old files beyond LOG_BACKUP_COUNT are deleted on rotation.
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional


# ── Configuration ────────────────────────────────────────────────────────────

LOG_DIR          = Path("logs")
LOG_LEVEL        = logging.DEBUG
CONSOLE_LEVEL    = logging.INFO
LOG_BACKUP_COUNT = 10
MAX_BYTES        = 5 * 1024 * 1024


# ── Custom log levels ─────────────────────────────────────────────────────────

GAME_EVENT_LEVEL = 25   # between INFO (20) and WARNING (30)
TACTIC_LEVEL     = 15   # between DEBUG (10) and INFO (20)

logging.addLevelName(GAME_EVENT_LEVEL, "GAME")
logging.addLevelName(TACTIC_LEVEL,     "TACTIC")


# ── Custom formatter ──────────────────────────────────────────────────────────

class CascadeFormatter(logging.Formatter):
    """
    Adds a [tick] column when a 'tick' extra field is present.

    Example output:
        2026-10-19 21:14:03.412 | INFO    |       - | Round 3 started
        2026-10-19 21:14:05.001 | GAME    |     412 | STATE | WAITING → BUILDING_SOLDIER
        2026-10-19 21:14:05.002 | TACTIC  |     412 | TRAIN | handle=17 → SOLDIER
    """

    BASE_FMT = "%(asctime)s.%(msecs)03d | %(levelname)-7s | %(tick_col)7s | %(message)s"
    DATE_FMT = "%Y-%m-%d %H:%M:%S"

    def format(self, record: logging.LogRecord) -> str:
        tick = getattr(record, "tick", None)
        record.tick_col = "-" if tick is None else str(tick)
        record.levelname = record.levelname[:7]
        return super().format(record)


# ── Logger factory ────────────────────────────────────────────────────────────

_logger_instance: Optional["CascadeLogger"] = None


def get_logger(name: str = "cascade") -> "CascadeLogger":
    """
    Return the singleton CascadeLogger, creating it on first call.

        log = get_logger()
    """
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = CascadeLogger(name)
    return _logger_instance


class CascadeLogger:
    """
    Thin wrapper around the standard logging module with game-specific
    helpers, a rotating file handler and a console handler.
    """

    def __init__(self, name: str = "cascade") -> None:
        self._logger = logging.getLogger(name)
        self._logger.setLevel(LOG_LEVEL)

        if self._logger.handlers:
            return

        self._setup_handlers()

    # ── Setup ─────────────────────────────────────────────────────────────────

    def _setup_handlers(self) -> None:
        LOG_DIR.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file  = LOG_DIR / f"cascade_{timestamp}.log"

        formatter = CascadeFormatter(
            fmt     = CascadeFormatter.BASE_FMT,
            datefmt = CascadeFormatter.DATE_FMT,
        )

        file_handler = logging.handlers.RotatingFileHandler(
            filename    = log_file,
            maxBytes    = MAX_BYTES,
            backupCount = LOG_BACKUP_COUNT,
            encoding    = "utf-8",
        )
        file_handler.setLevel(LOG_LEVEL)
        file_handler.setFormatter(formatter)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(CONSOLE_LEVEL)
        console_handler.setFormatter(formatter)

        self._logger.addHandler(file_handler)
        self._logger.addHandler(console_handler)

        self._logger.info("Logger initialised — writing to %s", log_file.resolve())

    # ── Standard log levels ───────────────────────────────────────────────────

    def debug(self, msg: str, *args, tick: Optional[int] = None, **kwargs) -> None:
        self._logger.debug(msg, *args, extra={"tick": tick}, **kwargs)

    def info(self, msg: str, *args, tick: Optional[int] = None, **kwargs) -> None:
        self._logger.info(msg, *args, extra={"tick": tick}, **kwargs)

    def warning(self, msg: str, *args, tick: Optional[int] = None, **kwargs) -> None:
        self._logger.warning(msg, *args, extra={"tick": tick}, **kwargs)

    def exception(self, msg: str, *args, tick: Optional[int] = None, **kwargs) -> None:
        self._logger.exception(msg, *args, extra={"tick": tick}, **kwargs)

    # ── Game-specific helpers ─────────────────────────────────────────────────

    def game_event(self, event_type: str, detail: str, tick: Optional[int] = None) -> None:
        """
        Log a significant named event (state transitions, round start/end,
        tuner restarts).

            log.game_event("ROUND_END", "round=4 metric=+3", tick=5120)
        """
        self._logger.log(
            GAME_EVENT_LEVEL,
            "%s | %s",
            event_type.upper(),
            detail,
            extra={"tick": tick},
        )

    def command(
        self,
        kind: str,
        handle: int,
        target: object = None,
        tick: Optional[int] = None,
    ) -> None:
        """Log one command sent to the game world."""
        target_str = f" → {target}" if target is not None else ""
        self._logger.log(
            TACTIC_LEVEL,
            "%s | handle=%s%s",
            kind.upper(),
            handle,
            target_str,
            extra={"tick": tick},
        )

    def tuner(self, state, round_number: Optional[int] = None) -> None:
        """Log the parameter search state after a round boundary."""
        self._logger.debug(
            "Tuner | round=%s dim=%d dir=%+d phase=%s avg=%.2f prev=%.2f n=%d wraps=%d",
            round_number,
            getattr(state, "dimension_index", 0),
            getattr(state, "direction", 1),
            getattr(getattr(state, "phase", None), "name", "?"),
            getattr(state, "running_average", 0.0),
            getattr(state, "previous_average", 0.0),
            getattr(state, "samples_collected", 0),
            getattr(state, "wrap_count", 0),
        )
