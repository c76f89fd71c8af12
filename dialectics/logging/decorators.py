"""
Decorators for automatic logging of engine stages.

These decorators enable traceability without cluttering the state machine.
"""

import functools
import time
from typing import Any, Callable

from .logger import get_dialectics_logger


def track_stage(stage: str, threshold_ms: float = 1000.0) -> Callable:
    """
    Decorator to log entry, completion and failure of a run stage method.

    The decorated method's instance is expected to expose ``run_id``; when it
    does not, the stage is logged against ``"-"``.

    Args:
        stage: Stage name used as the log component
        threshold_ms: Warning threshold in milliseconds

    Example:
        >>> class Run:
        ...     run_id = "r1"
        ...     @track_stage("derivation")
        ...     def derive(self):
        ...         return 42
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            run_id = getattr(args[0], "run_id", "-") if args else "-"
            log = get_dialectics_logger(stage, run_id=run_id)
            log.debug(f"Run {run_id}: entering {stage} ({func.__name__})")

            start_time = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                elapsed_ms = (time.perf_counter() - start_time) * 1000
                log.bind(function=func.__name__, elapsed_ms=elapsed_ms).debug(
                    f"Run {run_id}: {stage} failed after {elapsed_ms:.1f}ms: {e}"
                )
                raise

            elapsed_ms = (time.perf_counter() - start_time) * 1000
            if elapsed_ms > threshold_ms:
                log.bind(
                    function=func.__name__, elapsed_ms=elapsed_ms, threshold_ms=threshold_ms
                ).warning(f"Performance threshold exceeded: {func.__name__}")
            else:
                log.bind(function=func.__name__, elapsed_ms=elapsed_ms).debug(
                    f"Run {run_id}: {stage} completed"
                )
            return result

        return wrapper

    return decorator
