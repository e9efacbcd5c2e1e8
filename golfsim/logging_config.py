"""
Logging setup for the Golf simulator.

Two output styles share one set of context fields (simulation, game, seat,
strategy):
- JSON lines when ENVIRONMENT=production, for loading batch runs elsewhere
- Coloured single lines otherwise
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional, TextIO

# Set by the harness for the duration of a batch / a single game
simulation_id_var: ContextVar[Optional[str]] = ContextVar("simulation_id", default=None)
game_id_var: ContextVar[Optional[str]] = ContextVar("game_id", default=None)

NOISY_LIBRARIES = ("matplotlib", "PIL")


def record_context(record: logging.LogRecord) -> dict:
    """
    Collect the context fields for a record.

    Explicit `extra=` values on the record win over the context variables.

    Args:
        record: Log record being formatted.

    Returns:
        Dict with only the fields that are set.
    """
    context = {}

    simulation_id = simulation_id_var.get()
    if simulation_id:
        context["simulation_id"] = simulation_id

    game_id = getattr(record, "game_id", None) or game_id_var.get()
    if game_id:
        context["game_id"] = game_id

    seat = getattr(record, "seat", None)
    if seat is not None:
        context["seat"] = seat

    strategy = getattr(record, "strategy", None)
    if strategy:
        context["strategy"] = strategy

    return context


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **record_context(record),
        }

        if record.levelno >= logging.ERROR:
            entry["source"] = f"{record.pathname}:{record.lineno} in {record.funcName}"
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class DevelopmentFormatter(logging.Formatter):
    """Short coloured lines with the context in brackets."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, "")
        level = f"{color}{record.levelname:<8}{self.RESET if color else ''}"
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        context = record_context(record)
        context.pop("simulation_id", None)
        if "game_id" in context:
            context["game"] = context.pop("game_id")[:8]
        tags = " ".join(f"{key}={value}" for key, value in context.items())

        line = f"{clock} {level} {record.name}"
        if tags:
            line += f" [{tags}]"
        line += f" - {record.getMessage()}"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(
    level: str = "INFO",
    environment: str = "development",
    stream: Optional[TextIO] = None,
) -> None:
    """
    Route all logging to a single stream handler.

    Args:
        level: Root log level name; unknown names fall back to INFO.
        environment: "production" for JSON lines, anything else for coloured text.
        stream: Where to write, stdout by default.
    """
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JSONFormatter() if environment == "production" else DevelopmentFormatter())

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in NOISY_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("golf").debug(f"Logging ready ({level}, {environment})")


class ContextLogger(logging.LoggerAdapter):
    """
    Logger adapter carrying fixed context fields into every record.

    Usage:
        log = get_logger("golf.game").with_context(game_id=game.game_id)
        log.debug("Reshuffled", extra={"seat": 2})
    """

    def __init__(self, logger: logging.Logger, extra: Optional[dict] = None):
        super().__init__(logger, dict(extra or {}))

    def with_context(self, **fields) -> "ContextLogger":
        """Copy of this adapter with more context fields."""
        return ContextLogger(self.logger, {**self.extra, **fields})

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger(name: str) -> ContextLogger:
    return ContextLogger(logging.getLogger(name))
