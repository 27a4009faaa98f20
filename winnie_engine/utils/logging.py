from __future__ import annotations

import logging
import sys
from contextvars import ContextVar, Token
from datetime import datetime, UTC
from typing import Optional

# Context variables for structured logging
request_id_var: ContextVar[str] = ContextVar("request_id", default="-")
couple_id_var: ContextVar[str] = ContextVar("couple_id", default="-")
scenario_id_var: ContextVar[str] = ContextVar("scenario_id", default="-")


class ContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        record.couple_id = couple_id_var.get()
        record.scenario_id = scenario_id_var.get()
        return True


class SimpleStructuredFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
        msg = record.getMessage()
        return (
            f"{ts} level={record.levelname} logger={record.name} "
            f"request_id={getattr(record,'request_id','-')} couple_id={getattr(record,'couple_id','-')} "
            f"scenario_id={getattr(record,'scenario_id','-')} "
            f"msg={msg}"
        )


def setup_logging(level: str = "INFO") -> None:
    lvl = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(lvl)

    # Replace handlers so repeated setup calls don't duplicate output
    root.handlers = []

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(lvl)
    handler.addFilter(ContextFilter())
    handler.setFormatter(SimpleStructuredFormatter())

    root.addHandler(handler)


def set_log_context(*, request_id: str, couple_id: Optional[str] = None, scenario_id: Optional[str] = None) -> None:
    request_id_var.set(request_id)
    if couple_id is not None:
        couple_id_var.set(couple_id)
    if scenario_id is not None:
        scenario_id_var.set(scenario_id)


def set_scenario(scenario_id: str) -> Token:
    return scenario_id_var.set(scenario_id)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
