"""
Logging infrastructure for the Dialectics engine.

Provides structured logging with:
- Component-specific sinks (derivation, revision, selection, gate, outcome)
- Stage event tracking per run
- Gate result logging
"""

import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from loguru import logger

# Components that get their own log file when file logging is enabled
ENGINE_COMPONENTS = ("derivation", "revision", "selection", "gate", "outcome")


class DialecticsLogger:
    """
    Logger setup for the engine with component-specific sinks.

    Features:
    - Structured logging with bound run context
    - Per-component log files
    - Log rotation and retention
    """

    def __init__(
        self,
        log_dir: Optional[Path] = None,
        rotation: str = "100 MB",
        retention: str = "1 month",
        level: str = "INFO",
        format_string: Optional[str] = None,
        enable_file_logging: bool = True,
        enable_console_logging: bool = True,
    ):
        """
        Initialize the engine logger.

        Args:
            log_dir: Directory for log files
            rotation: When to rotate log files
            retention: How long to keep old logs
            level: Default log level
            format_string: Custom format string
            enable_file_logging: Whether to log to files
            enable_console_logging: Whether to log to console
        """
        self.log_dir = log_dir or Path("logs")
        self.rotation = rotation
        self.retention = retention
        self.level = level
        self.enable_file_logging = enable_file_logging

        self.format_string = format_string or (
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[component]}</cyan> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        )

        # Remove default handler
        logger.remove()
        logger.configure(extra={"component": "system"})

        if enable_console_logging:
            logger.add(
                sys.stderr,
                format=self.format_string,
                level=level,
                colorize=True,
            )

        if enable_file_logging:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            self._add_file_handlers()

        self.logger = logger.bind(component="system")

    def _add_file_handlers(self) -> None:
        """Add the main log file, one file per engine component and an error log."""
        logger.add(
            self.log_dir / "dialectics.log",
            format=self.format_string,
            level=self.level,
            rotation=self.rotation,
            retention=self.retention,
            compression="zip",
        )

        for component in ENGINE_COMPONENTS:
            logger.add(
                self.log_dir / f"{component}.log",
                format=self.format_string,
                level="DEBUG",
                rotation=self.rotation,
                retention=self.retention,
                compression="zip",
                filter=lambda record, c=component: record["extra"].get("component") == c,
            )

        logger.add(
            self.log_dir / "errors.log",
            format=self.format_string,
            level="ERROR",
            rotation=self.rotation,
            retention=self.retention,
            compression="zip",
        )

    def get_logger(self, component: str) -> Any:
        """
        Get a logger bound to a specific component.

        Args:
            component: Component name (e.g., "derivation", "gate")

        Returns:
            Logger instance bound to the component
        """
        return logger.bind(component=component)


def get_dialectics_logger(component: str = "system", **context: Any) -> Any:
    """
    Get a component-specific logger, optionally bound to run context.

    Example:
        >>> log = get_dialectics_logger("derivation", run_id="run-1")
        >>> log.info("Derived partition")
    """
    return logger.bind(component=component, **context)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def log_stage_event(logger_instance: Any, run_id: str, stage: str, event: str, **kwargs: Any) -> None:
    """
    Log a run stage transition with structured data.

    Args:
        logger_instance: Logger to use
        run_id: Run identifier
        stage: Stage name (e.g., "derivation", "selection")
        event: Event type (e.g., "entered", "completed", "triggered")
        **kwargs: Additional context
    """
    logger_instance.bind(
        run_id=run_id, stage=stage, event=event, timestamp=_now(), **kwargs
    ).info(f"Run {run_id}: {stage} {event}")


def log_gate_result(logger_instance: Any, run_id: str, passed: bool, **kwargs: Any) -> None:
    """
    Log an obligation gate result.

    Args:
        logger_instance: Logger to use
        run_id: Run identifier
        passed: Whether every obligation held
        **kwargs: Additional context
    """
    level = "info" if passed else "warning"
    bound = logger_instance.bind(run_id=run_id, passed=passed, timestamp=_now(), **kwargs)
    getattr(bound, level)(f"Run {run_id}: obligation gate {'PASS' if passed else 'FAIL'}")


# Global logger instance
_dialectics_logger: Optional[DialecticsLogger] = None


def initialize_logging(
    log_dir: Optional[Path] = None, level: str = "INFO", **kwargs: Any
) -> DialecticsLogger:
    """
    Initialize the Dialectics logging system.

    This should be called once at application startup.

    Args:
        log_dir: Directory for log files
        level: Default log level
        **kwargs: Additional configuration for DialecticsLogger

    Returns:
        Configured DialecticsLogger instance
    """
    global _dialectics_logger
    _dialectics_logger = DialecticsLogger(log_dir=log_dir, level=level, **kwargs)
    return _dialectics_logger


def initialize_from_config(log_config: Any) -> DialecticsLogger:
    """Initialize logging from a LogConfig instance."""
    return initialize_logging(
        log_dir=Path(log_config.log_dir),
        level=log_config.level,
        rotation=log_config.rotation,
        retention=log_config.retention,
        enable_file_logging=log_config.enable_file_logging,
        enable_console_logging=log_config.enable_console_logging,
    )


def get_logger_instance() -> Optional[DialecticsLogger]:
    """Get the global logger instance."""
    return _dialectics_logger
