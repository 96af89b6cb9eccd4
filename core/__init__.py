"""
Core modules for the Poker Cashier.

This package contains:
- Session ledger and reports (core.ledger)
- Fixed-point money helpers (core.money)
- Inbound events and collaborator interfaces (core.events, core.interfaces)
- Locks, circuit breaker and observability
"""
