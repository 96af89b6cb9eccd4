"""Observability Package."""

from .logging_config import (
    bind_context,
    configure_logging,
    get_logger,
    unbind_context,
)
from .metrics import (
    observe_payout_latency,
    record_cashout,
    record_payout_failure,
    record_rate_fallback,
    record_session_finished,
    record_session_started,
    record_tip,
)
from .metrics_server import MetricsServer

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    # Metrics
    "record_session_started",
    "record_session_finished",
    "record_tip",
    "record_cashout",
    "record_payout_failure",
    "record_rate_fallback",
    "observe_payout_latency",
    # Server
    "MetricsServer",
]
