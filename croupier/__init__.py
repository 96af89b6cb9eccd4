"""Croupier Package: inbound event dispatch and command components."""

from .croupier import Croupier

__all__ = ["Croupier"]
