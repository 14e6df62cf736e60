"""Structured logging configuration using structlog."""

import logging
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog
from structlog.processors import CallsiteParameter

from bluecloud.core.config import LoggingConfig

# Libraries whose debug chatter drowns out resampling events
QUIET_LOGGERS = ("trimesh", "numpy", "matplotlib", "PIL")


def _shared_processors(add_caller_info: bool) -> List[Any]:
    processors = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if add_caller_info:
        processors.append(
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    CallsiteParameter.FILENAME,
                    CallsiteParameter.LINENO,
                    CallsiteParameter.FUNC_NAME,
                ],
            )
        )
    return processors


def _renderer(log_format: str) -> Any:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    if log_format == "console":
        return structlog.dev.ConsoleRenderer(
            colors=sys.stderr.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        )
    return structlog.processors.KeyValueRenderer(
        key_order=["timestamp", "level", "logger", "event"],
        drop_missing=True,
    )


def _attach(
    root: logging.Logger,
    handler: logging.Handler,
    renderer: Any,
    shared: List[Any],
) -> None:
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )
    root.addHandler(handler)


def setup_logging(
    config: Optional[LoggingConfig] = None,
    log_file: Optional[Path] = None,
) -> structlog.stdlib.BoundLogger:
    """Route structlog and stdlib logging through one set of handlers.

    Events go to stderr so resampled points can be piped from stdout. A log
    file, when configured, always receives JSON lines.

    Args:
        config: Logging configuration (defaults if None)
        log_file: Explicit log file; otherwise ``log_dir/bluecloud.log`` is
            used when ``log_to_file`` is set

    Returns:
        Logger for the ``bluecloud`` namespace
    """
    config = config or LoggingConfig()
    if log_file is None and config.log_to_file and config.log_dir is not None:
        config.log_dir.mkdir(parents=True, exist_ok=True)
        log_file = config.log_dir / "bluecloud.log"

    shared = _shared_processors(config.add_caller_info)
    structlog.configure(
        processors=shared + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(config.level)
    _attach(root, logging.StreamHandler(sys.stderr), _renderer(config.format), shared)
    if log_file:
        _attach(root, logging.FileHandler(log_file), _renderer("json"), shared)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return structlog.get_logger("bluecloud")


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger bound to ``name``."""
    return structlog.get_logger(name)


def log_performance(
    logger: structlog.stdlib.BoundLogger,
    operation: str,
    duration: float,
    **kwargs: Any,
) -> None:
    """Emit a ``performance`` event with the duration in milliseconds."""
    logger.info(
        "performance",
        operation=operation,
        duration_ms=round(duration * 1000, 2),
        **kwargs,
    )


def log_resample_result(logger: structlog.stdlib.BoundLogger, result: Any) -> None:
    """Log a ``ResampleResult`` as ``resample_success`` or ``resample_failed``.

    The result's metrics are flattened into the event.
    """
    input_file = str(result.input_path) if result.input_path else None
    if not result.success:
        logger.error("resample_failed", input_file=input_file, error=result.error, **result.metrics)
        return

    logger.info(
        "resample_success",
        input_file=input_file,
        output_file=str(result.output_path) if result.output_path else None,
        gave_up=result.gave_up,
        **result.metrics,
    )


class StructuredLogger:
    """Time a block and log ``<operation>_started``, ``_completed`` or ``_failed``.

    Exceptions are logged and re-raised.
    """

    def __init__(self, logger: structlog.stdlib.BoundLogger, operation: str, **context: Any):
        self.logger = logger
        self.operation = operation
        self.context: Dict[str, Any] = context
        self._started: Optional[float] = None

    def __enter__(self) -> "StructuredLogger":
        self._started = time.perf_counter()
        self.logger.info(f"{self.operation}_started", **self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        elapsed_ms = round((time.perf_counter() - self._started) * 1000, 2)
        if exc_type is None:
            self.logger.info(
                f"{self.operation}_completed", duration_ms=elapsed_ms, **self.context
            )
            return

        self.logger.error(
            f"{self.operation}_failed",
            duration_ms=elapsed_ms,
            error=str(exc_val),
            error_type=exc_type.__name__,
            **self.context,
        )

    def update_context(self, **kwargs: Any) -> None:
        """Add fields to the completion or failure event."""
        self.context.update(kwargs)
