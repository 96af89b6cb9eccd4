"""
Croupier Components Package.

Contains the specialized components the Croupier delegates to:
- SessionCommands: Session lifecycle commands and reports
- TipProcessor: Inbound tip handling
- CashoutDesk: Cashout settlement
"""

from .cashout_desk import CashoutDesk
from .session_commands import SessionCommands
from .tip_processor import TipProcessor

__all__ = ["CashoutDesk", "SessionCommands", "TipProcessor"]
