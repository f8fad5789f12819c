"""Optional MLflow tracing.

When the ``tracing`` extra is installed and ``MLFLOW_TRACKING_URI`` is set,
each tool call becomes a ``TOOL`` span and ``mlflow.gemini.autolog()``
nests the Gemini requests made during that call beneath it. Otherwise
every function here is a no-op.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

try:
    import mlflow
    import mlflow.gemini

    _HAS_MLFLOW = True
except ImportError:
    _HAS_MLFLOW = False


def _passthrough(fn: Callable) -> Callable:
    return fn


def is_enabled() -> bool:
    if not _HAS_MLFLOW:
        return False
    from .config import get_config

    return get_config().tracing_enabled


def trace(
    func: Callable | None = None,
    *,
    name: str | None = None,
    span_type: str | None = None,
    attributes: dict[str, Any] | None = None,
) -> Callable:
    """Span decorator for tool entry points, e.g. ``@trace(name="comment_analyze", span_type="TOOL")``.

    Decided at import time of the decorated module: tools defined while
    tracing is off stay undecorated.
    """
    if is_enabled():
        return mlflow.trace(func, name=name, span_type=span_type, attributes=attributes)
    if func is None:
        return _passthrough
    return func


def setup() -> None:
    """Connect to the tracking server and turn on Gemini autologging.

    Errors are logged, never raised; the server starts without tracing.
    """
    if not is_enabled():
        return

    from .config import get_config

    cfg = get_config()
    try:
        mlflow.set_tracking_uri(cfg.mlflow_tracking_uri)
        mlflow.set_experiment(cfg.mlflow_experiment_name)
        mlflow.gemini.autolog()
    except Exception:
        logger.warning("Could not enable MLflow tracing at %s", cfg.mlflow_tracking_uri, exc_info=True)
        return
    logger.info("Tracing tool calls to %s (experiment %s)", cfg.mlflow_tracking_uri, cfg.mlflow_experiment_name)


def shutdown() -> None:
    if not is_enabled():
        return
    try:
        mlflow.flush_trace_async_logging()
    except Exception:
        logger.warning("Could not flush pending MLflow traces", exc_info=True)
