"""
Prometheus Metrics for the Poker Cashier.

Author: Poker Cashier Team
Version: 1.0.0
"""

from prometheus_client import Counter, Gauge, Histogram, Info

# ============================================================================
# COUNTERS
# ============================================================================

sessions_started_total = Counter(
    "cashier_sessions_started_total",
    "Total number of poker sessions started",
    ["rate_source"],
)

sessions_finished_total = Counter(
    "cashier_sessions_finished_total",
    "Total number of poker sessions finished by their host",
)

tips_total = Counter(
    "cashier_tips_total",
    "Inbound tips by outcome",
    ["outcome"],
)

cashouts_total = Counter(
    "cashier_cashouts_total",
    "Recorded cashouts by payout result",
    ["payout"],
)

payout_failures_total = Counter(
    "cashier_payout_failures_total",
    "Failed outbound transfers",
    ["kind"],
)

rate_fallbacks_total = Counter(
    "cashier_rate_fallbacks_total",
    "Rate resolutions that skipped or failed the live feed",
    ["reason"],
)

# ============================================================================
# GAUGES
# ============================================================================

active_sessions = Gauge(
    "cashier_active_sessions",
    "Sessions currently accepting deposits",
)

# ============================================================================
# HISTOGRAMS
# ============================================================================

payout_latency_seconds = Histogram(
    "cashier_payout_latency_seconds",
    "Payout transport call latency",
    ["kind"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

# ============================================================================
# INFO
# ============================================================================

cashier_info = Info(
    "cashier",
    "Poker cashier build information",
)


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================


def record_session_started(rate_source: str):
    sessions_started_total.labels(rate_source=rate_source).inc()
    active_sessions.inc()


def record_session_finished():
    sessions_finished_total.inc()
    active_sessions.dec()


def record_tip(outcome: str):
    tips_total.labels(outcome=outcome).inc()


def record_cashout(payout: str):
    cashouts_total.labels(payout=payout).inc()


def record_payout_failure(kind: str):
    payout_failures_total.labels(kind=kind).inc()


def record_rate_fallback(reason: str):
    rate_fallbacks_total.labels(reason=reason).inc()


def observe_payout_latency(kind: str, seconds: float):
    payout_latency_seconds.labels(kind=kind).observe(seconds)
