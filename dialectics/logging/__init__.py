"""
Logging infrastructure for the Dialectics engine.

Provides structured loguru logging and a stage-tracking decorator.
"""

from .logger import (
    ENGINE_COMPONENTS,
    DialecticsLogger,
    get_dialectics_logger,
    get_logger_instance,
    initialize_from_config,
    initialize_logging,
    log_gate_result,
    log_stage_event,
)
from .decorators import track_stage

__all__ = [
    # Logger
    "ENGINE_COMPONENTS",
    "DialecticsLogger",
    "get_dialectics_logger",
    "get_logger_instance",
    "initialize_from_config",
    "initialize_logging",
    "log_gate_result",
    "log_stage_event",
    # Decorators
    "track_stage",
]
