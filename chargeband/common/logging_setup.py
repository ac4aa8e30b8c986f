"""
Structured Logging Setup

Every service logs through a child of the "chargeband" logger, which
owns the single stdout handler. Text lines for interactive use, JSON
lines for log shippers.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

from .config import ControlConfig, RuntimeSettings, LogFormat

LOGGER_ROOT = "chargeband"

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Attributes every LogRecord carries; anything else came in through `extra`
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with `extra` fields flattened in"""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "service": getattr(record, "service", "unknown"),
            "message": record.getMessage(),
        }
        log_data.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and key not in log_data
        )

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class ServiceLoggerAdapter(logging.LoggerAdapter):
    """Tags every record with the service that logged it"""

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        kwargs["extra"] = {**kwargs.get("extra", {}), **self.extra}
        return msg, kwargs


def _build_handler(log_format: LogFormat) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    if log_format == LogFormat.JSON:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATEFMT))
    return handler


def _settings_from_environment() -> RuntimeSettings:
    raw_format = os.environ.get("CHARGEBAND_LOG_FORMAT", "text").lower()
    return RuntimeSettings(
        log_level=os.environ.get("CHARGEBAND_LOG_LEVEL", "INFO"),
        log_format=LogFormat.JSON if raw_format == "json" else LogFormat.TEXT,
    )


def get_service_logger(service_name: str) -> ServiceLoggerAdapter:
    """
    Get a logger adapter with service context.

    Until configure_logging() runs, level and format come from the
    CHARGEBAND_LOG_LEVEL and CHARGEBAND_LOG_FORMAT environment variables.
    """
    if not logging.getLogger(LOGGER_ROOT).handlers:
        configure_logging(_settings_from_environment())

    logger = logging.getLogger(f"{LOGGER_ROOT}.{service_name}")
    return ServiceLoggerAdapter(logger, {"service": service_name})


def configure_logging(settings: RuntimeSettings) -> None:
    """Apply the resolved level and format to every service logger"""
    root = logging.getLogger(LOGGER_ROOT)
    root.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.addHandler(_build_handler(settings.log_format))
    root.propagate = False


def log_decision(
    logger: logging.LoggerAdapter,
    config: ControlConfig,
    percent: int,
    action: Any,
) -> None:
    """Log the verbose per-cycle diagnostic line"""
    state = "on" if action.turns_on else "off"
    logger.info(
        f"Target: {config.target_percent}% +/- {config.tolerance_percent}%, "
        f"Current: {percent}%, Ensuring switch is {state}.",
        extra={
            "target_pct": config.target_percent,
            "tolerance_pct": config.tolerance_percent,
            "battery_pct": percent,
            "action": action.value,
        },
    )


def log_switch_state(
    logger: logging.LoggerAdapter,
    device_name: str,
    state: Any,
) -> None:
    """Log an observed switch state change"""
    logger.info(
        f"Switch {device_name} is {state.value}",
        extra={"device": device_name, "switch_state": state.value},
    )
